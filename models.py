"""
Data models for the Drive vs. Fly Travel Cost Calculator
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


ROLE_TAGS = ("director", "manager", "generalist")


class TravelCostError(Exception):
    """Base class for travel cost calculation errors"""


class ConfigurationMissingError(TravelCostError):
    """Exception raised when a required rate or profile table is absent"""
    def __init__(self, section: str):
        self.section = section
        super().__init__(f"Missing configuration section: {section}")


class UnknownAirportError(TravelCostError):
    """Exception raised when an airport code is not in the airport table"""
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Airport not found: {code}")


class InvalidInputError(TravelCostError):
    """Exception raised for negative or non-finite trip inputs"""
    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


def _require_positive(field_name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise InvalidInputError(field_name, f"must be a finite number greater than 0, got {value!r}")


def _require_non_negative(field_name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise InvalidInputError(field_name, f"must be a finite number of at least 0, got {value!r}")


@dataclass(frozen=True)
class RoleRate:
    """Compensation profile for one personnel role"""
    hourly_compensation: float
    value_factor: float
    short_label: str = ""
    full_label: str = ""

    def __post_init__(self):
        _require_non_negative("hourly_compensation", self.hourly_compensation)
        _require_non_negative("value_factor", self.value_factor)

    @property
    def cost_per_hour(self) -> float:
        """Windshield-time cost of one person of this role for one hour"""
        return self.hourly_compensation * self.value_factor


@dataclass(frozen=True)
class AircraftProfile:
    """Performance and cost profile for one aircraft type"""
    key: str
    name: str
    departure_distance_miles: float
    approach_distance_miles: float
    departure_speed_mph: float
    cruise_speed_mph: float
    approach_speed_mph: float
    cost_per_mile: float

    def __post_init__(self):
        for name in ("departure_distance_miles", "approach_distance_miles",
                     "departure_speed_mph", "cruise_speed_mph",
                     "approach_speed_mph", "cost_per_mile"):
            _require_positive(f"{self.key}.{name}", getattr(self, name))

    @property
    def max_short_miles(self) -> float:
        """Longest one-way distance flown without a cruise phase"""
        return self.departure_distance_miles + self.approach_distance_miles


@dataclass(frozen=True)
class RateConfig:
    """Immutable rate table used by every pricing call"""
    roles: Dict[str, RoleRate]
    aircraft: Dict[str, AircraftProfile]
    vehicle_capacity: int
    driving_speed_mph: float
    accommodation_per_person: float
    pilot_lodging: float
    hours_allowed_per_day_driving: float
    hours_allowed_per_day_flying: float
    driving_cost_per_mile: float
    generalist_percentage: float = 0.05
    pilots_per_flight: int = 2

    def __post_init__(self):
        if not isinstance(self.vehicle_capacity, int) or self.vehicle_capacity <= 0:
            raise InvalidInputError("vehicle_capacity", f"must be a positive integer, got {self.vehicle_capacity!r}")
        _require_positive("driving_speed_mph", self.driving_speed_mph)
        _require_positive("hours_allowed_per_day_driving", self.hours_allowed_per_day_driving)
        _require_positive("hours_allowed_per_day_flying", self.hours_allowed_per_day_flying)
        _require_non_negative("accommodation_per_person", self.accommodation_per_person)
        _require_non_negative("pilot_lodging", self.pilot_lodging)
        _require_non_negative("driving_cost_per_mile", self.driving_cost_per_mile)
        _require_non_negative("pilots_per_flight", self.pilots_per_flight)
        if not 0 <= self.generalist_percentage <= 1:
            raise InvalidInputError("generalist_percentage", "must be between 0 and 1")


@dataclass(frozen=True)
class PersonnelCounts:
    """Number of travelers per role"""
    directors: int = 0
    managers: int = 0
    generalists: int = 0

    @property
    def total(self) -> int:
        return self.directors + self.managers + self.generalists

    def as_dict(self) -> Dict[str, int]:
        return {"director": self.directors, "manager": self.managers, "generalist": self.generalists}


@dataclass(frozen=True)
class Airport:
    """One row of the static airport table"""
    icao: str
    faa: str
    name: str
    lat: float
    lon: float
    driving_from_home: Optional[float] = None

    @property
    def code(self) -> str:
        return self.icao or self.faa

    @property
    def label(self) -> str:
        codes = " / ".join(c for c in (self.icao, self.faa) if c)
        return f"{codes} - {self.name}".strip()


@dataclass(frozen=True)
class TripStop:
    """A destination entered for an itinerary, with the hours spent there"""
    code: str
    dwell_hours: float = 0.0


@dataclass(frozen=True)
class TripLeg:
    """One origin -> destination segment of an itinerary"""
    origin_code: str
    destination_code: str
    drive_miles_one_way: float
    fly_miles_one_way: float
    dwell_hours: float = 0.0
    leg_count: int = 1

    @classmethod
    def from_round_trip(cls, origin_code: str, destination_code: str, drive_miles_one_way: float,
                        fly_miles_one_way: float, dwell_hours: float = 0.0,
                        round_trip: bool = True) -> "TripLeg":
        return cls(origin_code, destination_code, drive_miles_one_way, fly_miles_one_way,
                   dwell_hours, 2 if round_trip else 1)

    @property
    def total_drive_miles(self) -> float:
        return self.drive_miles_one_way * self.leg_count

    @property
    def total_fly_miles(self) -> float:
        return self.fly_miles_one_way * self.leg_count


@dataclass(frozen=True)
class FlightSegments:
    """Miles flown in each phase of a one-way flight"""
    departure_miles: float
    cruise_miles: float
    approach_miles: float

    @property
    def total_miles(self) -> float:
        return self.departure_miles + self.cruise_miles + self.approach_miles


@dataclass(frozen=True)
class CostBreakdown:
    """Cost breakdown for one travel mode"""
    mode: str
    employee_cost: float
    distance_cost: float
    lodging_cost: float
    total_cost: float
    travel_hours: float
    overnight_count: int
    units_needed: Optional[int] = None
    miles: float = 0.0
    travelers: int = 0
    segments: Optional[FlightSegments] = None


@dataclass(frozen=True)
class TripCostResult:
    """Drive and per-aircraft fly costs for one trip"""
    personnel: PersonnelCounts
    employee_cost_per_hour: float
    role_costs_per_hour: Dict[str, float]
    drive: CostBreakdown
    fly: Dict[str, CostBreakdown]

    def cheapest_fly(self) -> Tuple[str, CostBreakdown]:
        """Return (aircraft key, breakdown) of the cheapest aircraft"""
        return min(self.fly.items(), key=lambda item: item[1].total_cost)


@dataclass(frozen=True)
class FlightLogRecord:
    """One historical flight leg from the flight log"""
    date: Optional[datetime]
    date_str: str
    origin: str
    destination: str
    tail_number: str = ""
    miles_flown: float = 0.0
    flight_time_hours: float = 0.0
    block_time_hours: float = 0.0
    passenger_names: Tuple[str, ...] = ()
    leg_number: str = ""
    purpose: str = ""

    @property
    def date_valid(self) -> bool:
        return self.date is not None

    @property
    def passenger_count(self) -> int:
        return len(self.passenger_names)

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"


@dataclass(frozen=True)
class ClassifiedPassengers:
    """Passenger names split by role"""
    directors: Tuple[str, ...] = ()
    managers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassifiedLeg:
    """A flight log record with classified passengers and drive/fly costs"""
    record: FlightLogRecord
    passengers: ClassifiedPassengers
    role_counts: PersonnelCounts
    fly_miles: float
    drive_miles: float
    drive_cost: CostBreakdown
    fly_cost: CostBreakdown
    aircraft_key: str

    @property
    def savings(self) -> float:
        """Positive when driving costs more than flying"""
        return self.drive_cost.total_cost - self.fly_cost.total_cost

    @property
    def month(self) -> Optional[str]:
        if not self.record.date_valid:
            return None
        return self.record.date.strftime("%Y-%m")


@dataclass(frozen=True)
class MonthlySummary:
    """Aggregated costs and personnel for one calendar month"""
    month: str
    directors: int
    managers: int
    generalists: int
    total_miles_fly: float
    total_miles_drive: float
    total_cost_drive: float
    total_cost_fly: float
    flight_count: int

    @property
    def savings(self) -> float:
        return self.total_cost_drive - self.total_cost_fly


@dataclass
class ProcessResult:
    """Outcome of processing a batch of flight log records"""
    classified: List[ClassifiedLeg] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
