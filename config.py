"""
Configuration module for the Drive vs. Fly Travel Cost Calculator
Contains all rate tables, aircraft profiles, and flight log constants
"""
from models import AircraftProfile, RateConfig, RoleRate


class TravelCostConfig:
    """Configuration class containing all travel-cost constants and data"""

    # Role rates: (hourly_compensation, value_factor, short_label, full_label)
    ROLES = {
        "director": (86.53, 5.7, "Directors", "Office Directors / Principle Engineers"),
        "manager": (67.46, 3.8, "Professionals", "Managers / Supervisors / Professionals"),
        "generalist": (51.40, 2.4, "Generalists", "Transportation Generalists"),
    }

    # Aircraft profiles: departure/approach phase distances (miles), phase speeds (mph),
    # operating cost per flight mile
    AIRCRAFT = {
        "king_air": {
            "name": "King Air",
            "departure_distance_miles": 30,
            "approach_distance_miles": 40,
            "departure_speed_mph": 200,
            "cruise_speed_mph": 300,
            "approach_speed_mph": 180,
            "cost_per_mile": 15.52,
        },
        "kodiak": {
            "name": "Kodiak",
            "departure_distance_miles": 15,
            "approach_distance_miles": 20,
            "departure_speed_mph": 120,
            "cruise_speed_mph": 180,
            "approach_speed_mph": 110,
            "cost_per_mile": 7.76,
        },
    }

    # Older flat-speed model, kept for reproducing historical reports
    LEGACY_FLYING_SPEED_MPH = {
        "king_air": 280,
        "kodiak": 180,
    }

    # Driving and lodging
    DRIVING_COST_PER_MILE = 0.725
    DRIVING_SPEED_MPH = 55
    VEHICLE_CAPACITY = 4
    ACCOMMODATION_PER_PERSON = 163  # hotel 120 + meals 11 + 13 + 19
    PILOT_LODGING = 272
    HOURS_ALLOWED_PER_DAY_DRIVING = 10
    HOURS_ALLOWED_PER_DAY_FLYING = 12
    PILOTS_PER_FLIGHT = 2

    # Share of monthly travelers reported as generalists
    GENERALIST_PERCENTAGE = 0.05

    # Home base (St Paul Downtown / Holman Field)
    HOME_BASE_CODES = ("KSTP", "STP")
    HOME_BASE_COORDINATES = (44.9345, -93.0604)
    SAME_BASE_CODES = ("KSTP", "STP", "MSP")

    # Distance model
    EARTH_RADIUS_MILES = 3959
    DRIVING_DISTANCE_FACTOR = 1.2
    MAX_CITY_PAIRS = 6

    # Tail number -> aircraft key
    TAIL_NUMBERS = {
        "55MN": "king_air",
        "70MN": "king_air",
        "N12MN": "kodiak",
        "N24MN": "kodiak",
    }

    # Flight log cleaning
    HEADER_SEARCH_LINES = 5
    PASSENGER_COLUMNS = 14
    INVALID_PASSENGERS = (
        "miles", "deadhead", "training", "aeronautics",
        "deadhead, miles", "training, aeronau", "",
    )
    NAVAIDS_PASSENGERS = ("kremer, nicholas", "canelon-lander, luis")
    LOG_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%m-%d-%Y", "%d-%b-%Y", "%b %d, %Y")

    # Passenger classification
    FUZZY_MATCH_THRESHOLD = 2

    @classmethod
    def build_rate_config(cls) -> RateConfig:
        """Build the immutable rate table from the class defaults"""
        roles = {
            tag: RoleRate(hourly, factor, short_label, full_label)
            for tag, (hourly, factor, short_label, full_label) in cls.ROLES.items()
        }
        aircraft = {
            key: AircraftProfile(key=key, **values)
            for key, values in cls.AIRCRAFT.items()
        }
        return RateConfig(
            roles=roles,
            aircraft=aircraft,
            vehicle_capacity=cls.VEHICLE_CAPACITY,
            driving_speed_mph=cls.DRIVING_SPEED_MPH,
            accommodation_per_person=cls.ACCOMMODATION_PER_PERSON,
            pilot_lodging=cls.PILOT_LODGING,
            hours_allowed_per_day_driving=cls.HOURS_ALLOWED_PER_DAY_DRIVING,
            hours_allowed_per_day_flying=cls.HOURS_ALLOWED_PER_DAY_FLYING,
            driving_cost_per_mile=cls.DRIVING_COST_PER_MILE,
            generalist_percentage=cls.GENERALIST_PERCENTAGE,
            pilots_per_flight=cls.PILOTS_PER_FLIGHT,
        )
