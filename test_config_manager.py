"""
Tests for rate configuration loading and validation
"""
import json

import pytest

from config import TravelCostConfig
from config_manager import ConfigManager
from models import ConfigurationMissingError


def _write_config(tmp_path, data):
    path = tmp_path / "travel_config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_match_built_in_rates():
    manager = ConfigManager(None)
    assert manager.build_rate_config() == TravelCostConfig.build_rate_config()
    assert manager.validate_config() == []


def test_file_overrides_merge_into_defaults(tmp_path):
    path = _write_config(tmp_path, {
        "aircraft": {"king_air": {"cost_per_mile": 18.0}},
        "rates": {"driving_speed_mph": 60},
    })
    rates = ConfigManager(path).build_rate_config()

    assert rates.aircraft["king_air"].cost_per_mile == 18.0
    assert rates.aircraft["king_air"].cruise_speed_mph == 300
    assert rates.aircraft["kodiak"].cost_per_mile == 7.76
    assert rates.driving_speed_mph == 60
    assert rates.vehicle_capacity == 4


def test_unreadable_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "travel_config.json"
    path.write_text("{not json", encoding="utf-8")
    manager = ConfigManager(str(path))
    assert manager.build_rate_config() == TravelCostConfig.build_rate_config()


def test_missing_section_raises():
    manager = ConfigManager(None)
    del manager.config["aircraft"]

    with pytest.raises(ConfigurationMissingError) as excinfo:
        manager.build_rate_config()
    assert excinfo.value.section == "aircraft"
    assert "Missing required section: aircraft" in manager.validate_config()


def test_missing_role_raises():
    manager = ConfigManager(None)
    del manager.config["roles"]["generalist"]

    with pytest.raises(ConfigurationMissingError):
        manager.build_rate_config()
    assert "Missing role rate: generalist" in manager.validate_config()


def test_invalid_values_are_reported(tmp_path):
    path = _write_config(tmp_path, {
        "rates": {"driving_speed_mph": -5},
        "logging": {"level": "LOUD"},
        "tail_numbers": {"99MN": "citation"},
    })
    issues = ConfigManager(path).validate_config()

    assert any(issue.startswith("Invalid rate configuration") for issue in issues)
    assert any("logging level" in issue for issue in issues)
    assert "Tail number 99MN refers to unknown aircraft: citation" in issues


def test_tail_numbers_are_upper_cased(tmp_path):
    path = _write_config(tmp_path, {"tail_numbers": {"n77mn ": "kodiak"}})
    tails = ConfigManager(path).get_tail_numbers()
    assert tails["N77MN"] == "kodiak"
    assert tails["55MN"] == "king_air"


def test_relative_config_path_is_read_from_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "my_rates.json").write_text(json.dumps({"rates": {"driving_cost_per_mile": 100.0}}),
                                            encoding="utf-8")

    manager = ConfigManager("my_rates.json")
    assert manager.build_rate_config().driving_cost_per_mile == 100.0


@pytest.mark.parametrize("home_base,codes", [
    ("KSTP", ("KSTP", "STP")),
    ("stp", ("KSTP", "STP")),
    (" kdlh ", ("KDLH",)),
])
def test_home_base_codes(tmp_path, home_base, codes):
    path = _write_config(tmp_path, {"data": {"home_base": home_base}})
    assert ConfigManager(path).get_home_base_codes() == codes


def test_create_sample_config(tmp_path):
    target = str(tmp_path / "sample.json")
    assert ConfigManager(None).create_sample_config(target) == target

    with open(target, encoding="utf-8") as f:
        sample = json.load(f)
    assert "rates" in sample
    assert ConfigManager(target).validate_config() == []
