"""
Configuration management: JSON file overrides on top of the built-in rate tables
"""
import copy
import json
import os
import logging
from typing import Dict, Any, List, Optional, Tuple

from config import TravelCostConfig
from models import (
    AircraftProfile, ConfigurationMissingError, InvalidInputError, RateConfig, RoleRate, ROLE_TAGS
)


REQUIRED_SECTIONS = ("roles", "aircraft", "rates")


def default_config() -> Dict[str, Any]:
    """Default configuration built from TravelCostConfig"""
    return {
        "app": {
            "version": "1.0",
            "title": "Drive vs. Fly Cost Calculator",
            "debug_mode": False
        },
        "logging": {
            "level": "INFO",
            "file_enabled": True,
            "file_name": "travel_cost.log",
            "max_file_size": 10485760,  # 10MB
            "backup_count": 3
        },
        "data": {
            "airport_csv": "airports.csv",
            "directors_json": "directors.json",
            "home_base": TravelCostConfig.HOME_BASE_CODES[0]
        },
        "roles": {
            tag: {"hourly_compensation": hourly, "value_factor": factor,
                  "short_label": short_label, "full_label": full_label}
            for tag, (hourly, factor, short_label, full_label) in TravelCostConfig.ROLES.items()
        },
        "aircraft": copy.deepcopy(TravelCostConfig.AIRCRAFT),
        "rates": {
            "vehicle_capacity": TravelCostConfig.VEHICLE_CAPACITY,
            "driving_speed_mph": TravelCostConfig.DRIVING_SPEED_MPH,
            "accommodation_per_person": TravelCostConfig.ACCOMMODATION_PER_PERSON,
            "pilot_lodging": TravelCostConfig.PILOT_LODGING,
            "hours_allowed_per_day_driving": TravelCostConfig.HOURS_ALLOWED_PER_DAY_DRIVING,
            "hours_allowed_per_day_flying": TravelCostConfig.HOURS_ALLOWED_PER_DAY_FLYING,
            "driving_cost_per_mile": TravelCostConfig.DRIVING_COST_PER_MILE,
            "generalist_percentage": TravelCostConfig.GENERALIST_PERCENTAGE,
            "pilots_per_flight": TravelCostConfig.PILOTS_PER_FLIGHT
        },
        "tail_numbers": dict(TravelCostConfig.TAIL_NUMBERS)
    }


class ConfigManager:
    """Manages rate configuration with file-based overrides"""

    def __init__(self, config_file: Optional[str] = "travel_config.json"):
        # Caller-supplied paths are relative to the working directory
        self.config_file = os.path.abspath(config_file) if config_file else None
        self.config: Dict[str, Any] = {}
        self.logger = logging.getLogger(__name__)
        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        self.config = default_config()

        if self.config_file and os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                self._merge_config(self.config, file_config)
                self.logger.info(f"Configuration loaded from {self.config_file}")
            except (OSError, ValueError) as e:
                self.logger.warning(f"Could not load config file: {e}, using defaults")
        elif self.config_file:
            self.logger.info(f"No config file at {self.config_file}, using defaults")

    def _merge_config(self, target: Dict[str, Any], overrides: Dict[str, Any]):
        """Merge file configuration into defaults, section by section"""
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge_config(target[key], value)
            else:
                target[key] = value

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return self.config.get(section, {}).get(key, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get entire configuration section"""
        return copy.deepcopy(self.config.get(section, {}))

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        for section in REQUIRED_SECTIONS:
            if not self.config.get(section):
                issues.append(f"Missing required section: {section}")

        roles = self.config.get("roles", {})
        for tag in ROLE_TAGS:
            if roles and tag not in roles:
                issues.append(f"Missing role rate: {tag}")

        try:
            self.build_rate_config()
        except ConfigurationMissingError:
            pass
        except (InvalidInputError, KeyError, TypeError) as e:
            issues.append(f"Invalid rate configuration: {e}")

        # Validate logging section
        log_config = self.get_section("logging")
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_config.get("level") not in valid_levels:
            issues.append(f"Invalid logging level, must be one of: {valid_levels}")

        max_size = log_config.get("max_file_size", 0)
        if not isinstance(max_size, int) or max_size <= 0:
            issues.append("Invalid max_file_size in logging section")

        tails = self.config.get("tail_numbers", {})
        aircraft = self.config.get("aircraft", {})
        for tail, key in tails.items():
            if key not in aircraft:
                issues.append(f"Tail number {tail} refers to unknown aircraft: {key}")

        return issues

    def build_rate_config(self) -> RateConfig:
        """
        Build the immutable rate table for one session or report run

        Raises:
            ConfigurationMissingError: If roles, aircraft or rates are absent
        """
        for section in REQUIRED_SECTIONS:
            if not self.config.get(section):
                raise ConfigurationMissingError(section)

        roles_section = self.config["roles"]
        for tag in ROLE_TAGS:
            if tag not in roles_section:
                raise ConfigurationMissingError(f"roles.{tag}")

        roles = {
            tag: RoleRate(
                hourly_compensation=values["hourly_compensation"],
                value_factor=values["value_factor"],
                short_label=values.get("short_label", tag.title()),
                full_label=values.get("full_label", tag.title()),
            )
            for tag, values in roles_section.items()
        }
        aircraft = {
            key: AircraftProfile(key=key, **{"name": key, **values})
            for key, values in self.config["aircraft"].items()
        }
        return RateConfig(roles=roles, aircraft=aircraft, **self.config["rates"])

    def get_tail_numbers(self) -> Dict[str, str]:
        """Tail number -> aircraft key, upper-cased"""
        return {tail.strip().upper(): key for tail, key in self.config.get("tail_numbers", {}).items()}

    def get_home_base_codes(self) -> Tuple[str, ...]:
        """Codes treated as the home base; the built-in base keeps its ICAO and FAA aliases"""
        home_base = str(self.get("data", "home_base") or TravelCostConfig.HOME_BASE_CODES[0]).strip().upper()
        if home_base in TravelCostConfig.HOME_BASE_CODES:
            return TravelCostConfig.HOME_BASE_CODES
        return (home_base,)

    def create_sample_config(self, sample_file: Optional[str] = None) -> Optional[str]:
        """Create a sample configuration file for user customization"""
        sample_config = {
            "rates": {
                "driving_speed_mph": TravelCostConfig.DRIVING_SPEED_MPH,
                "accommodation_per_person": TravelCostConfig.ACCOMMODATION_PER_PERSON
            },
            "aircraft": {
                "king_air": {"cost_per_mile": TravelCostConfig.AIRCRAFT["king_air"]["cost_per_mile"]}
            },
            "logging": {
                "level": "INFO",
                "file_enabled": True
            }
        }

        sample_file = os.path.abspath(sample_file or "sample_config.json")
        try:
            with open(sample_file, 'w', encoding='utf-8') as f:
                json.dump(sample_config, f, indent=2, ensure_ascii=False)
            self.logger.info(f"Sample configuration created at {sample_file}")
            return sample_file
        except OSError as e:
            self.logger.error(f"Could not create sample config: {e}")
            return None
