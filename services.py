"""
Business logic services for the Drive vs. Fly Travel Cost Calculator
"""
import os
import re
import json
import math
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from config import TravelCostConfig
from models import (
    Airport, AircraftProfile, ClassifiedLeg, ClassifiedPassengers, ConfigurationMissingError,
    CostBreakdown, FlightLogRecord, FlightSegments, InvalidInputError, MonthlySummary,
    PersonnelCounts, ProcessResult, RateConfig, TravelCostError, TripCostResult, TripLeg,
    TripStop, UnknownAirportError, ROLE_TAGS
)
from performance import PerformanceCache, timed
from utils import resource_path, parse_float_or_zero, parse_log_date, validate_trip_leg


DIRECTOR = "director"
MANAGER = "manager"


class AirportService:
    """Service for looking up airports in the static airport table"""

    REQUIRED_COLUMNS = ("icao", "faa", "name", "lat", "lon")

    def __init__(self, csv_path: Optional[str] = None):
        self.csv_path = csv_path or resource_path("airports.csv")
        self.logger = logging.getLogger(__name__)
        self.table = self._load_table()
        self._index: Dict[str, Airport] = {}
        for row in self.table.itertuples(index=False):
            driving = None if pd.isna(row.driving_from_home) else float(row.driving_from_home)
            airport = Airport(row.icao, row.faa, row.name, float(row.lat), float(row.lon), driving)
            for code in (row.icao, row.faa):
                if code:
                    self._index.setdefault(code, airport)
        self.logger.info(f"Loaded {len(self.table)} airports from {self.csv_path}")

    def _load_table(self) -> pd.DataFrame:
        """Load airport table from CSV file"""
        if not os.path.exists(self.csv_path):
            raise IOError(f"Airport table not found: {self.csv_path}")

        df = pd.read_csv(self.csv_path, dtype={"icao": str, "faa": str, "name": str})
        missing = [col for col in self.REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise IOError(f"Airport table {self.csv_path} is missing columns: {', '.join(missing)}")

        for col in ("icao", "faa"):
            df[col] = df[col].fillna("").astype(str).str.strip().str.upper()
        df["name"] = df["name"].fillna("").astype(str).str.strip()
        if "driving_from_home" not in df.columns:
            df["driving_from_home"] = float("nan")
        df["driving_from_home"] = pd.to_numeric(df["driving_from_home"], errors="coerce")
        return df

    @staticmethod
    def normalize_code(code: str) -> str:
        return (code or "").strip().upper()

    def get_airport(self, code: str) -> Airport:
        """Get airport by ICAO or FAA code"""
        normalized = self.normalize_code(code)
        if normalized not in self._index:
            raise UnknownAirportError(code)
        return self._index[normalized]

    def has_airport(self, code: str) -> bool:
        return self.normalize_code(code) in self._index

    def all_airports(self) -> List[Airport]:
        """Airports in table order, one entry per row"""
        seen = set()
        airports = []
        for airport in self._index.values():
            if id(airport) not in seen:
                seen.add(id(airport))
                airports.append(airport)
        return sorted(airports, key=lambda a: a.code)


def haversine(lat1: float, lon1: float, lat2: float, lon2: float,
              radius: float = TravelCostConfig.EARTH_RADIUS_MILES) -> float:
    """Great circle distance between two points, in the unit of radius"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class DistanceCalculator:
    """Service for calculating flying and driving distances between airports"""

    def __init__(self, airport_service: AirportService,
                 home_base_codes: Sequence[str] = TravelCostConfig.HOME_BASE_CODES,
                 driving_factor: float = TravelCostConfig.DRIVING_DISTANCE_FACTOR,
                 cache_size: int = 256):
        self.airport_service = airport_service
        self.home_base_codes = tuple(c.strip().upper() for c in home_base_codes)
        self.driving_factor = driving_factor
        self.cache = PerformanceCache(cache_size)
        self.logger = logging.getLogger(__name__)

    def is_home_base(self, code: str) -> bool:
        return AirportService.normalize_code(code) in self.home_base_codes

    def home_coordinates(self) -> Tuple[float, float]:
        """Home base coordinates from the airport table, config default otherwise"""
        for code in self.home_base_codes:
            if self.airport_service.has_airport(code):
                home = self.airport_service.get_airport(code)
                return home.lat, home.lon
        return TravelCostConfig.HOME_BASE_COORDINATES

    def get_flying_distance(self, origin: str, destination: str) -> float:
        """Great circle distance between airports in statute miles"""
        key = ("fly", AirportService.normalize_code(origin), AirportService.normalize_code(destination))
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        dep = self.airport_service.get_airport(origin)
        arr = self.airport_service.get_airport(destination)
        distance = haversine(dep.lat, dep.lon, arr.lat, arr.lon)
        self.cache.set(key, distance)
        return distance

    def get_driving_distance(self, origin: str, destination: str) -> float:
        """
        Driving distance between airports in statute miles

        Legs touching the home base use the precomputed road distance when the
        table has one; every other pair is great circle x driving factor.
        """
        key = ("drive", AirportService.normalize_code(origin), AirportService.normalize_code(destination))
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if self.is_home_base(origin):
            distance = self._driving_from_home(destination)
        elif self.is_home_base(destination):
            distance = self._driving_from_home(origin)
        else:
            distance = self.get_flying_distance(origin, destination) * self.driving_factor

        self.cache.set(key, distance)
        return distance

    def _driving_from_home(self, code: str) -> float:
        airport = self.airport_service.get_airport(code)
        if airport.driving_from_home:
            return airport.driving_from_home

        home_lat, home_lon = self.home_coordinates()
        self.logger.debug(f"No road distance for {airport.code}, using great circle estimate")
        return haversine(airport.lat, airport.lon, home_lat, home_lon) * self.driving_factor


def get_flight_segments(one_way_miles: float, profile: AircraftProfile) -> FlightSegments:
    """
    Split a one-way flight into departure, cruise and approach miles

    Flights shorter than the combined departure and approach distances never
    reach cruise; their miles are split in proportion to the nominal phases.
    """
    max_short = profile.max_short_miles
    if one_way_miles <= max_short:
        departure = one_way_miles * (profile.departure_distance_miles / max_short)
        return FlightSegments(departure, 0.0, one_way_miles - departure)

    return FlightSegments(
        profile.departure_distance_miles,
        one_way_miles - max_short,
        profile.approach_distance_miles,
    )


def segment_hours(segments: FlightSegments, profile: AircraftProfile) -> float:
    """Flight time for the given phase miles"""
    return (segments.departure_miles / profile.departure_speed_mph +
            segments.cruise_miles / profile.cruise_speed_mph +
            segments.approach_miles / profile.approach_speed_mph)


def flight_hours(total_miles: float, profile: AircraftProfile, leg_count: int = 1) -> float:
    """Total flight time when total_miles is flown as leg_count equal legs"""
    legs = max(1, leg_count)
    return segment_hours(get_flight_segments(total_miles / legs, profile), profile) * legs


def legacy_flight_hours(miles: float, aircraft_key: str,
                        flat_speeds: Optional[Dict[str, float]] = None) -> float:
    """Flight time under the older flat-speed model"""
    speeds = TravelCostConfig.LEGACY_FLYING_SPEED_MPH if flat_speeds is None else flat_speeds
    return miles / speeds[aircraft_key]


class TripCostCalculator:
    """Service for computing drive and fly cost breakdowns"""

    def __init__(self, rate_config: Optional[RateConfig]):
        if rate_config is None:
            raise ConfigurationMissingError("rates")
        if not rate_config.roles:
            raise ConfigurationMissingError("roles")
        if not rate_config.aircraft:
            raise ConfigurationMissingError("aircraft")
        for tag in ROLE_TAGS:
            if tag not in rate_config.roles:
                raise ConfigurationMissingError(f"roles.{tag}")
        self.rates = rate_config
        self.logger = logging.getLogger(__name__)

    def employee_cost_per_hour(self, personnel: PersonnelCounts) -> Tuple[float, Dict[str, float]]:
        """Windshield-time cost per hour, total and per role"""
        role_costs = {
            tag: count * self.rates.roles[tag].cost_per_hour
            for tag, count in personnel.as_dict().items()
        }
        return sum(role_costs.values()), role_costs

    def vehicles_needed(self, total_personnel: int) -> int:
        if total_personnel <= 0:
            return 0
        return math.ceil(total_personnel / self.rates.vehicle_capacity)

    def compute_drive_cost(self, drive_miles: float, dwell_hours: float,
                           personnel: PersonnelCounts) -> CostBreakdown:
        """Driving cost for the total miles driven by the whole party"""
        per_hour, _ = self.employee_cost_per_hour(personnel)
        total_personnel = personnel.total

        drive_hours = drive_miles / self.rates.driving_speed_mph
        vehicles = self.vehicles_needed(total_personnel)
        distance_cost = drive_miles * self.rates.driving_cost_per_mile * vehicles
        overnights = math.floor((drive_hours + dwell_hours) / self.rates.hours_allowed_per_day_driving)
        lodging = total_personnel * self.rates.accommodation_per_person * overnights
        employee_cost = per_hour * drive_hours

        return CostBreakdown(
            mode="drive",
            employee_cost=employee_cost,
            distance_cost=distance_cost,
            lodging_cost=lodging,
            total_cost=employee_cost + distance_cost + lodging,
            travel_hours=drive_hours,
            overnight_count=overnights,
            units_needed=vehicles,
            miles=drive_miles,
            travelers=total_personnel,
        )

    def compute_fly_cost(self, fly_miles: float, dwell_hours: float, personnel: PersonnelCounts,
                         profile: AircraftProfile, leg_count: int = 1) -> CostBreakdown:
        """Flying cost for one aircraft; flight time is not billed as employee time"""
        legs = max(1, leg_count)
        one_way = get_flight_segments(fly_miles / legs, profile)
        hours = segment_hours(one_way, profile) * legs
        travelers = personnel.total + self.rates.pilots_per_flight

        distance_cost = fly_miles * profile.cost_per_mile
        overnights = math.floor((hours + dwell_hours) / self.rates.hours_allowed_per_day_flying)
        lodging = travelers * self.rates.accommodation_per_person * overnights

        return CostBreakdown(
            mode=profile.key,
            employee_cost=0.0,
            distance_cost=distance_cost,
            lodging_cost=lodging,
            total_cost=distance_cost + lodging,
            travel_hours=hours,
            overnight_count=overnights,
            units_needed=None,
            miles=fly_miles,
            travelers=travelers,
            segments=FlightSegments(one_way.departure_miles * legs,
                                    one_way.cruise_miles * legs,
                                    one_way.approach_miles * legs),
        )

    def compute_trip_cost(self, drive_miles: float, fly_miles: float, dwell_hours: float,
                          personnel: PersonnelCounts, leg_count: int = 1) -> TripCostResult:
        """
        Compute drive and per-aircraft fly costs for one trip

        Args:
            drive_miles: Total drive miles, already multiplied by leg count
            fly_miles: Total fly miles, already multiplied by leg count
            dwell_hours: Hours spent at the destination
            personnel: Travelers per role
            leg_count: Number of equal legs flown, used to split fly_miles per leg

        Returns:
            TripCostResult with the drive breakdown and one fly breakdown per aircraft
        """
        per_hour, role_costs = self.employee_cost_per_hour(personnel)
        drive = self.compute_drive_cost(drive_miles, dwell_hours, personnel)
        fly = {
            key: self.compute_fly_cost(fly_miles, dwell_hours, personnel, profile, leg_count)
            for key, profile in self.rates.aircraft.items()
        }
        return TripCostResult(personnel, per_hour, role_costs, drive, fly)

    def compute_leg_cost(self, leg: TripLeg, personnel: PersonnelCounts) -> TripCostResult:
        return self.compute_trip_cost(leg.total_drive_miles, leg.total_fly_miles,
                                      leg.dwell_hours, personnel, leg.leg_count)

    def compute_itinerary_cost(self, legs: Sequence[TripLeg], personnel: PersonnelCounts) -> TripCostResult:
        """Price each leg on its own and add the breakdowns together"""
        if not legs:
            raise InvalidInputError("legs", "at least one trip leg is required")

        results = [self.compute_leg_cost(leg, personnel) for leg in legs]
        total = results[0]
        for result in results[1:]:
            total = TripCostResult(
                personnel=total.personnel,
                employee_cost_per_hour=total.employee_cost_per_hour,
                role_costs_per_hour=total.role_costs_per_hour,
                drive=_combine_breakdowns(total.drive, result.drive),
                fly={key: _combine_breakdowns(total.fly[key], result.fly[key]) for key in total.fly},
            )
        self.logger.debug(f"Priced itinerary of {len(legs)} legs: drive {total.drive.total_cost:.2f}")
        return total


def _combine_breakdowns(first: CostBreakdown, second: CostBreakdown) -> CostBreakdown:
    """Sum two legs of the same mode; the same party (and vehicles) travel both"""
    if first.units_needed is None and second.units_needed is None:
        units = None
    else:
        units = max(first.units_needed or 0, second.units_needed or 0)

    segments = first.segments
    if first.segments is not None and second.segments is not None:
        segments = FlightSegments(
            first.segments.departure_miles + second.segments.departure_miles,
            first.segments.cruise_miles + second.segments.cruise_miles,
            first.segments.approach_miles + second.segments.approach_miles,
        )

    return CostBreakdown(
        mode=first.mode,
        employee_cost=first.employee_cost + second.employee_cost,
        distance_cost=first.distance_cost + second.distance_cost,
        lodging_cost=first.lodging_cost + second.lodging_cost,
        total_cost=first.total_cost + second.total_cost,
        travel_hours=first.travel_hours + second.travel_hours,
        overnight_count=first.overnight_count + second.overnight_count,
        units_needed=units,
        miles=first.miles + second.miles,
        travelers=first.travelers,
        segments=segments,
    )


class ItineraryPlanner:
    """Service for turning entered destinations into chained trip legs"""

    def __init__(self, distance_calculator: DistanceCalculator,
                 home_base: str = TravelCostConfig.HOME_BASE_CODES[0],
                 max_city_pairs: int = TravelCostConfig.MAX_CITY_PAIRS):
        self.distance_calculator = distance_calculator
        self.home_base = AirportService.normalize_code(home_base)
        self.max_city_pairs = max_city_pairs

    def plan(self, stops: Sequence[TripStop], round_trip: bool = True) -> List[TripLeg]:
        """
        Build trip legs starting at the home base

        A single stop is flown out (and back when round_trip). Several stops are
        chained one way each, with a final leg back to the home base.
        """
        if not stops:
            raise InvalidInputError("stops", "select at least one destination")
        if len(stops) > 1 and len(stops) + 1 > self.max_city_pairs:
            raise InvalidInputError("stops", f"at most {self.max_city_pairs} city pairs are supported")

        if len(stops) == 1:
            stop = stops[0]
            leg = TripLeg.from_round_trip(
                self.home_base, AirportService.normalize_code(stop.code),
                self.distance_calculator.get_driving_distance(self.home_base, stop.code),
                self.distance_calculator.get_flying_distance(self.home_base, stop.code),
                stop.dwell_hours, round_trip)
            return [validate_trip_leg(leg)]

        legs = []
        origin = self.home_base
        for stop in list(stops) + [TripStop(self.home_base, 0.0)]:
            destination = AirportService.normalize_code(stop.code)
            leg = TripLeg(
                origin, destination,
                self.distance_calculator.get_driving_distance(origin, destination),
                self.distance_calculator.get_flying_distance(origin, destination),
                stop.dwell_hours, 1)
            legs.append(validate_trip_leg(leg))
            origin = destination
        return legs


def normalize_name(name: str) -> str:
    """Lowercase a passenger name, turn "LAST, FIRST" into "first last", squeeze spaces"""
    if not name or not isinstance(name, str):
        return ""

    normalized = name.lower().strip()
    if "," in normalized:
        parts = [p.strip() for p in normalized.split(",")]
        if len(parts) == 2:
            normalized = f"{parts[1]} {parts[0]}"

    return re.sub(r"\s+", " ", normalized).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insert, delete and substitute costs"""
    a = a.lower().strip()
    b = b.lower().strip()
    previous = list(range(len(a) + 1))
    for j in range(1, len(b) + 1):
        current = [j] + [0] * len(a)
        for i in range(1, len(a) + 1):
            indicator = 0 if a[i - 1] == b[j - 1] else 1
            current[i] = min(current[i - 1] + 1,
                             previous[i] + 1,
                             previous[i - 1] + indicator)
        previous = current
    return previous[len(a)]


def load_directors(path: Optional[str] = None) -> List[str]:
    """Load known director names from a JSON list (or {"directors": [...]})"""
    path = path or resource_path("directors.json")
    with open(path, 'r', encoding='utf-8') as f:
        return directors_from_json(json.load(f))


def directors_from_json(data) -> List[str]:
    if isinstance(data, dict):
        data = data.get("directors", [])
    return [str(name) for name in data if str(name).strip()]


class PassengerClassifier:
    """Service for assigning passengers to the director or manager role"""

    def __init__(self, known_directors: Iterable[str],
                 threshold: int = TravelCostConfig.FUZZY_MATCH_THRESHOLD):
        self.directors = [n for n in (normalize_name(d) for d in known_directors) if n]
        self._director_set = set(self.directors)
        self.threshold = threshold
        self.logger = logging.getLogger(__name__)

    def classify(self, name: str) -> Optional[str]:
        """Return "director" or "manager", None for a blank name"""
        normalized = normalize_name(name)
        if not normalized:
            return None

        if normalized in self._director_set:
            return DIRECTOR

        for director in self.directors:
            if levenshtein_distance(normalized, director) <= self.threshold:
                self.logger.debug(f"Fuzzy matched passenger '{name}' to director '{director}'")
                return DIRECTOR

        return MANAGER

    def classify_all(self, names: Iterable[str]) -> ClassifiedPassengers:
        directors = []
        managers = []
        for name in names:
            if not name or not isinstance(name, str) or not name.strip():
                continue
            if self.classify(name) == DIRECTOR:
                directors.append(name)
            else:
                managers.append(name)
        return ClassifiedPassengers(tuple(directors), tuple(managers))


class FlightLogParser:
    """Service for parsing and cleaning flight log CSV exports"""

    ORIGIN_KEYS = ("origin", "departure", "dep")
    DESTINATION_KEYS = ("destination", "arrival", "arr")
    HEADER_TOKEN = re.compile(r"^[A-Z0-9\s]+$")
    SPLIT_NAME = re.compile(r"[A-Z],\s*[A-Z]", re.IGNORECASE)

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def parse_csv(self, csv_text: str) -> List[Dict[str, str]]:
        """Parse flight log text into row dicts keyed by lowercase header"""
        lines = [line.strip() for line in (csv_text or "").split("\n")]
        lines = [line for line in lines if line]
        if not lines:
            return []

        # Banner rows may precede the real header
        header_idx = next(
            (i for i, line in enumerate(lines[:TravelCostConfig.HEADER_SEARCH_LINES])
             if "tail" in line.lower()),
            0
        )
        header = [h.strip().lower() for h in lines[header_idx].split(",")]

        rows = []
        for line in lines[header_idx + 1:]:
            values = self._rebuild_passenger_names(header, self._split_line(line))
            rows.append({key: (values[idx] if idx < len(values) else "") for idx, key in enumerate(header)})
        return rows

    @staticmethod
    def _split_line(line: str) -> List[str]:
        """Split on commas that are outside double quotes"""
        values = []
        current = []
        in_quotes = False
        for char in line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == ',' and not in_quotes:
                values.append("".join(current).strip())
                current = []
            else:
                current.append(char)
        values.append("".join(current).strip())
        return values

    def _rebuild_passenger_names(self, header: List[str], values: List[str]) -> List[str]:
        """Merge unquoted "LAST, FIRST" passenger names split by the comma"""
        rebuilt = []
        j = 0
        while j < len(values):
            value = values[j]
            # Merged fields shift the remaining values back into line with the header
            key = header[len(rebuilt)] if len(rebuilt) < len(header) else ""
            if "passenger" in key and value and j + 1 < len(values):
                next_value = values[j + 1]
                if (" " not in value and next_value
                        and not self.HEADER_TOKEN.match(next_value)):
                    candidate = f"{value}, {next_value}"
                    if self.SPLIT_NAME.search(candidate):
                        rebuilt.append(candidate)
                        j += 2
                        continue
            rebuilt.append(value)
            j += 1
        return rebuilt

    @staticmethod
    def _first_field(row: Dict[str, str], keys: Sequence[str]) -> str:
        for key in keys:
            if row.get(key):
                return row[key]
        return ""

    @staticmethod
    def is_valid_passenger(name: str) -> bool:
        if not name or not isinstance(name, str):
            return False
        name_lower = name.lower().strip()
        return bool(name_lower) and name_lower not in TravelCostConfig.INVALID_PASSENGERS

    def extract_passengers(self, row: Dict[str, str]) -> List[str]:
        """Passengers from the numbered columns; the bare "passenger" column repeats passenger 1"""
        passengers = []
        for i in range(1, TravelCostConfig.PASSENGER_COLUMNS + 1):
            value = row.get(f"passenger {i}", "")
            if self.is_valid_passenger(value):
                passengers.append(value.strip())
        return passengers

    @staticmethod
    def is_same_base_leg(origin: str, destination: str) -> bool:
        same_base = TravelCostConfig.SAME_BASE_CODES
        return ((origin or "").strip().upper() in same_base and
                (destination or "").strip().upper() in same_base)

    @staticmethod
    def is_navaids_flight(passengers: List[str]) -> bool:
        return (len(passengers) == 1 and
                passengers[0].lower().strip() in TravelCostConfig.NAVAIDS_PASSENGERS)

    @timed
    def clean(self, csv_text: str) -> List[FlightLogRecord]:
        """Parse a flight log and drop administrative rows"""
        rows = self.parse_csv(csv_text)
        cleaned = []

        for row in rows:
            origin = self._first_field(row, self.ORIGIN_KEYS)
            destination = self._first_field(row, self.DESTINATION_KEYS)
            date_str = row.get("date", "")

            if self.is_same_base_leg(origin, destination):
                self.logger.debug(f"Skipping same-base leg {date_str} {origin}-{destination}")
                continue

            passengers = self.extract_passengers(row)
            if not passengers:
                self.logger.debug(f"Skipping leg without passengers {date_str} {origin}-{destination}")
                continue

            if self.is_navaids_flight(passengers):
                self.logger.debug(f"Skipping NavAids flight {date_str} with passenger {passengers[0]}")
                continue

            date = parse_log_date(date_str, TravelCostConfig.LOG_DATE_FORMATS)
            if date is None:
                self.logger.warning(f"Invalid date format: {date_str!r}")

            cleaned.append(FlightLogRecord(
                date=date,
                date_str=date_str,
                origin=origin.strip().upper(),
                destination=destination.strip().upper(),
                tail_number=self._first_field(row, ("tail#", "tail")).strip(),
                miles_flown=parse_float_or_zero(row.get("miles")),
                flight_time_hours=parse_float_or_zero(self._first_field(row, ("flight time", "flight_time"))),
                block_time_hours=parse_float_or_zero(self._first_field(row, ("block time", "block_time"))),
                passenger_names=tuple(passengers),
                leg_number=self._first_field(row, ("leg#", "leg")).strip(),
                purpose=row.get("purpose", "").strip(),
            ))

        self.logger.info(f"Cleaned flight log: kept {len(cleaned)} of {len(rows)} rows")
        return cleaned


def detect_aircraft_type(tail_number: str, tail_numbers: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Aircraft key for a tail number, None when unknown"""
    if not tail_number:
        return None
    table = TravelCostConfig.TAIL_NUMBERS if tail_numbers is None else tail_numbers
    return table.get(tail_number.strip().upper())


def aggregate_by_month(legs: Iterable[ClassifiedLeg], generalist_percentage: float) -> List[MonthlySummary]:
    """
    Roll classified legs up by calendar month

    A share of each month's travelers is reported as generalists; the
    allocation comes out of the manager count while directors stay fixed.
    """
    rows = [{
        "month": leg.month,
        "directors": leg.role_counts.directors,
        "managers": leg.role_counts.managers,
        "fly_miles": leg.fly_miles,
        "drive_miles": leg.drive_miles,
        "drive_cost": leg.drive_cost.total_cost,
        "fly_cost": leg.fly_cost.total_cost,
    } for leg in legs if leg.month]

    if not rows:
        return []

    grouped = (pd.DataFrame(rows)
               .groupby("month", sort=True)
               .agg(directors=("directors", "sum"),
                    managers=("managers", "sum"),
                    total_miles_fly=("fly_miles", "sum"),
                    total_miles_drive=("drive_miles", "sum"),
                    total_cost_drive=("drive_cost", "sum"),
                    total_cost_fly=("fly_cost", "sum"),
                    flight_count=("directors", "size")))

    summaries = []
    for month, row in grouped.iterrows():
        directors = int(row["directors"])
        total_people = directors + int(row["managers"])
        # round() keeps float noise such as 60 * 0.05 = 3.0000000000000004 from bumping the ceiling
        generalists = math.ceil(round(total_people * generalist_percentage, 9))
        summaries.append(MonthlySummary(
            month=str(month),
            directors=directors,
            managers=max(0, total_people - directors - generalists),
            generalists=generalists,
            total_miles_fly=float(row["total_miles_fly"]),
            total_miles_drive=float(row["total_miles_drive"]),
            total_cost_drive=float(row["total_cost_drive"]),
            total_cost_fly=float(row["total_cost_fly"]),
            flight_count=int(row["flight_count"]),
        ))
    return summaries


class FlightReportService:
    """Main service for pricing historical flight legs and building monthly reports"""

    def __init__(self, rate_config: RateConfig, distance_calculator: DistanceCalculator,
                 classifier: PassengerClassifier, tail_numbers: Optional[Dict[str, str]] = None,
                 parser: Optional[FlightLogParser] = None):
        self.rates = rate_config
        self.calculator = TripCostCalculator(rate_config)
        self.distance_calculator = distance_calculator
        self.classifier = classifier
        self.tail_numbers = dict(TravelCostConfig.TAIL_NUMBERS if tail_numbers is None else tail_numbers)
        self.parser = parser or FlightLogParser()
        self.logger = logging.getLogger(__name__)

    def process_leg(self, record: FlightLogRecord) -> ClassifiedLeg:
        """Classify passengers and price one flight log record as a one-way trip"""
        passengers = self.classifier.classify_all(record.passenger_names)
        counts = PersonnelCounts(directors=len(passengers.directors),
                                 managers=len(passengers.managers),
                                 generalists=0)

        fly_miles = self.distance_calculator.get_flying_distance(record.origin, record.destination)
        drive_miles = self.distance_calculator.get_driving_distance(record.origin, record.destination)
        result = self.calculator.compute_trip_cost(drive_miles, fly_miles, 0.0, counts, 1)

        aircraft_key = detect_aircraft_type(record.tail_number, self.tail_numbers)
        if aircraft_key in result.fly:
            fly_cost = result.fly[aircraft_key]
        else:
            if aircraft_key is not None:
                self.logger.warning(f"Tail {record.tail_number} maps to unconfigured aircraft {aircraft_key}")
            aircraft_key, fly_cost = result.cheapest_fly()

        return ClassifiedLeg(
            record=record,
            passengers=passengers,
            role_counts=counts,
            fly_miles=fly_miles,
            drive_miles=drive_miles,
            drive_cost=result.drive,
            fly_cost=fly_cost,
            aircraft_key=aircraft_key,
        )

    @timed
    def process_all(self, records: Iterable[FlightLogRecord]) -> ProcessResult:
        """Process every record on its own; failures become error strings"""
        result = ProcessResult()
        for record in records:
            try:
                result.classified.append(self.process_leg(record))
            except (TravelCostError, ValueError, ArithmeticError) as e:
                message = f"{record.date_str} {record.route}: {e}"
                self.logger.warning(f"Skipping flight leg {message}")
                result.errors.append(message)

        # Order by the record's own date; undated legs go last
        result.classified.sort(key=lambda leg: (not leg.record.date_valid,
                                                leg.record.date or datetime.min))
        self.logger.info(f"Processed {len(result.classified)} flight legs with {len(result.errors)} errors")
        return result

    def aggregate_by_month(self, legs: Iterable[ClassifiedLeg]) -> List[MonthlySummary]:
        legs = list(legs)
        undated = [leg for leg in legs if not leg.record.date_valid]
        for leg in undated:
            self.logger.warning(f"Leaving {leg.record.date_str!r} {leg.record.route} out of monthly totals: invalid date")
        return aggregate_by_month(legs, self.rates.generalist_percentage)

    def generate_report(self, csv_text: str) -> Tuple[ProcessResult, List[MonthlySummary]]:
        """Clean a flight log, price every leg and roll the legs up by month"""
        records = self.parser.clean(csv_text)
        result = self.process_all(records)
        return result, self.aggregate_by_month(result.classified)

    def legs_to_dataframe(self, legs: Iterable[ClassifiedLeg]) -> pd.DataFrame:
        """Detail table of classified legs"""
        columns = ['Date', 'Month', 'Origin', 'Destination', 'Tail', 'Aircraft', 'Directors',
                   'Managers', 'Passengers', 'Fly Miles', 'Drive Miles', 'Drive Cost',
                   'Fly Cost', 'Savings']
        rows = []
        for leg in legs:
            aircraft = self.rates.aircraft.get(leg.aircraft_key)
            rows.append({
                'Date': leg.record.date if leg.record.date_valid else leg.record.date_str,
                'Month': leg.month or '',
                'Origin': leg.record.origin,
                'Destination': leg.record.destination,
                'Tail': leg.record.tail_number,
                'Aircraft': aircraft.name if aircraft else leg.aircraft_key,
                'Directors': leg.role_counts.directors,
                'Managers': leg.role_counts.managers,
                'Passengers': '; '.join(leg.record.passenger_names),
                'Fly Miles': leg.fly_miles,
                'Drive Miles': leg.drive_miles,
                'Drive Cost': leg.drive_cost.total_cost,
                'Fly Cost': leg.fly_cost.total_cost,
                'Savings': leg.savings,
            })
        return pd.DataFrame(rows, columns=columns)
