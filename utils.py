"""
Utility functions for the Drive vs. Fly Travel Cost Calculator
"""
import os
import re
import sys
import math
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional

from models import InvalidInputError, PersonnelCounts, TripLeg


_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")


def resource_path(relative_path: str) -> str:
    """Get absolute path to resource, works for dev and for PyInstaller"""
    try:
        # PyInstaller creates a temp folder and stores path in _MEIPASS
        base_path = sys._MEIPASS
    except AttributeError:
        base_path = os.path.dirname(os.path.abspath(__file__))

    return os.path.join(base_path, relative_path)


def setup_logging(debug: bool = False, log_file: Optional[str] = "travel_cost.log",
                  max_bytes: int = 10485760, backup_count: int = 3) -> logging.Logger:
    """Setup logging configuration"""
    level = logging.DEBUG if debug else logging.INFO

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    return logging.getLogger(__name__)


def validate_numeric_input(value, field_name: str, minimum: float = 0.0) -> float:
    """
    Validate and convert numeric input

    Args:
        value: Value to validate (string or number)
        field_name: Name of the field for error messages
        minimum: Smallest accepted value

    Returns:
        Converted float value

    Raises:
        InvalidInputError: If value is not a finite number at or above minimum
    """
    try:
        # Handle comma as decimal separator
        number = float(str(value).strip().replace(',', '.'))
    except (ValueError, TypeError):
        raise InvalidInputError(field_name, f"invalid numeric value: {value}")

    if not math.isfinite(number):
        raise InvalidInputError(field_name, f"must be finite, got {value}")
    if number < minimum:
        raise InvalidInputError(field_name, f"must be at least {minimum:g}, got {value}")
    return number


def validate_integer_input(value, field_name: str, minimum: int = 0) -> int:
    """
    Validate and convert integer input

    Raises:
        InvalidInputError: If value is not an integer at or above minimum
    """
    if isinstance(value, float) and not value.is_integer():
        raise InvalidInputError(field_name, f"invalid integer value: {value}")
    try:
        number = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (ValueError, TypeError, OverflowError):
        raise InvalidInputError(field_name, f"invalid integer value: {value}")

    if number < minimum:
        raise InvalidInputError(field_name, f"must be at least {minimum}, got {value}")
    return number


def validate_personnel(directors, managers, generalists) -> PersonnelCounts:
    """Validate personnel counts entered by a user"""
    return PersonnelCounts(
        directors=validate_integer_input(directors, "directors"),
        managers=validate_integer_input(managers, "managers"),
        generalists=validate_integer_input(generalists, "generalists"),
    )


def validate_trip_leg(leg: TripLeg) -> TripLeg:
    """Reject legs with negative or non-finite miles and hours before pricing"""
    validate_numeric_input(leg.drive_miles_one_way, "drive_miles_one_way")
    validate_numeric_input(leg.fly_miles_one_way, "fly_miles_one_way")
    validate_numeric_input(leg.dwell_hours, "dwell_hours")
    validate_integer_input(leg.leg_count, "leg_count", minimum=1)
    return leg


def parse_float_or_zero(value) -> float:
    """Parse the leading number of a log field, 0 when there is none"""
    if value is None:
        return 0.0
    match = _LEADING_NUMBER.match(str(value).strip())
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def parse_log_date(value: str, formats: Iterable[str]) -> Optional[datetime]:
    """Parse a flight log date, None when no format matches"""
    text = (value or "").strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None
