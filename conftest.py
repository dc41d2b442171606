"""
Pytest configuration and shared fixtures
"""
from datetime import datetime

import pytest

from config import TravelCostConfig
from models import ClassifiedLeg, ClassifiedPassengers, CostBreakdown, FlightLogRecord, PersonnelCounts
from services import AirportService, DistanceCalculator, FlightReportService, PassengerClassifier


AIRPORTS_CSV = """icao,faa,name,lat,lon,driving_from_home
KSTP,STP,St Paul Downtown,44.9345,-93.0604,
KMSP,MSP,Minneapolis-St Paul,44.8848,-93.2223,12
KDLH,DLH,Duluth International,46.8421,-92.1936,155
KRST,RST,Rochester International,43.9083,-92.5000,85
KRWF,RWF,Redwood Falls Municipal,44.5472,-95.0823,
KBJI,BJI,Bemidji Regional,47.5094,-94.9337,225
"""

DIRECTORS = ["John Smith", "Jane Doe", "Priya Raman"]


@pytest.fixture
def rate_config():
    return TravelCostConfig.build_rate_config()


@pytest.fixture
def airport_csv(tmp_path):
    path = tmp_path / "airports.csv"
    path.write_text(AIRPORTS_CSV, encoding="utf-8")
    return str(path)


@pytest.fixture
def airport_service(airport_csv):
    return AirportService(airport_csv)


@pytest.fixture
def distance_calculator(airport_service):
    return DistanceCalculator(airport_service)


@pytest.fixture
def classifier():
    return PassengerClassifier(DIRECTORS)


@pytest.fixture
def report_service(rate_config, distance_calculator, classifier):
    return FlightReportService(rate_config, distance_calculator, classifier)


def _breakdown(mode, total):
    return CostBreakdown(mode=mode, employee_cost=0.0, distance_cost=total, lodging_cost=0.0,
                         total_cost=total, travel_hours=1.0, overnight_count=0)


@pytest.fixture
def make_leg():
    """Factory for classified legs with fixed counts and totals"""
    def _make_leg(date, directors=0, managers=0, fly_miles=100.0, drive_miles=120.0,
                  drive_cost=1000.0, fly_cost=800.0, date_str=None):
        parsed = datetime.strptime(date, "%Y-%m-%d") if date else None
        record = FlightLogRecord(date=parsed, date_str=date_str or date or "not a date",
                                 origin="KSTP", destination="KDLH",
                                 passenger_names=tuple(f"p{i}" for i in range(directors + managers)))
        return ClassifiedLeg(
            record=record,
            passengers=ClassifiedPassengers(),
            role_counts=PersonnelCounts(directors=directors, managers=managers),
            fly_miles=fly_miles,
            drive_miles=drive_miles,
            drive_cost=_breakdown("drive", drive_cost),
            fly_cost=_breakdown("king_air", fly_cost),
            aircraft_key="king_air",
        )
    return _make_leg
