"""
Tests for airport lookup and distance calculation
"""
import json

import pytest

from config_manager import ConfigManager
from models import TripStop, UnknownAirportError
from services import AirportService, DistanceCalculator, ItineraryPlanner, haversine


def test_lookup_by_icao_or_faa(airport_service):
    by_icao = airport_service.get_airport("KDLH")
    by_faa = airport_service.get_airport(" dlh ")
    assert by_icao is by_faa
    assert by_icao.name == "Duluth International"
    assert by_icao.driving_from_home == 155
    assert by_icao.code == "KDLH"


def test_unknown_airport(airport_service):
    with pytest.raises(UnknownAirportError) as excinfo:
        airport_service.get_airport("KZZZ")
    assert str(excinfo.value) == "Airport not found: KZZZ"
    assert not airport_service.has_airport("KZZZ")


def test_all_airports_lists_each_row_once(airport_service):
    codes = [a.code for a in airport_service.all_airports()]
    assert codes == sorted(codes)
    assert len(codes) == 6


def test_missing_table(tmp_path):
    with pytest.raises(IOError):
        AirportService(str(tmp_path / "missing.csv"))


def test_table_without_coordinates(tmp_path):
    path = tmp_path / "airports.csv"
    path.write_text("icao,faa,name\nKDLH,DLH,Duluth\n", encoding="utf-8")
    with pytest.raises(IOError):
        AirportService(str(path))


def test_shipped_table_loads():
    service = AirportService()
    assert service.has_airport("KSTP")
    assert service.has_airport("MSP")


def test_haversine_zero_and_symmetry():
    assert haversine(44.9, -93.0, 44.9, -93.0) == 0
    assert haversine(44.9, -93.0, 46.8, -92.2) == pytest.approx(haversine(46.8, -92.2, 44.9, -93.0))


def test_flying_distance(distance_calculator):
    miles = distance_calculator.get_flying_distance("KSTP", "KDLH")
    assert 120 < miles < 150
    assert distance_calculator.get_flying_distance("KDLH", "KSTP") == pytest.approx(miles)
    assert distance_calculator.get_flying_distance("KDLH", "KDLH") == 0


def test_driving_from_home_uses_road_table(distance_calculator):
    assert distance_calculator.get_driving_distance("KSTP", "KDLH") == 155
    assert distance_calculator.get_driving_distance("KDLH", "KSTP") == 155
    assert distance_calculator.get_driving_distance("STP", "KRST") == 85


def test_driving_from_home_without_road_distance(distance_calculator):
    """Rows without a road distance fall back to great circle x 1.2"""
    expected = distance_calculator.get_flying_distance("KSTP", "KRWF") * 1.2
    assert distance_calculator.get_driving_distance("KSTP", "KRWF") == pytest.approx(expected)


def test_driving_between_other_airports(distance_calculator):
    expected = distance_calculator.get_flying_distance("KDLH", "KBJI") * 1.2
    assert distance_calculator.get_driving_distance("KDLH", "KBJI") == pytest.approx(expected)


def test_custom_driving_factor(airport_service):
    calculator = DistanceCalculator(airport_service, driving_factor=1.5)
    expected = calculator.get_flying_distance("KDLH", "KRST") * 1.5
    assert calculator.get_driving_distance("KDLH", "KRST") == pytest.approx(expected)


def test_unknown_airport_in_distance(distance_calculator):
    with pytest.raises(UnknownAirportError):
        distance_calculator.get_driving_distance("KSTP", "KZZZ")
    with pytest.raises(UnknownAirportError):
        distance_calculator.get_flying_distance("KZZZ", "KDLH")


def test_repeated_lookups_hit_cache(distance_calculator):
    distance_calculator.get_flying_distance("KSTP", "KBJI")
    distance_calculator.get_flying_distance("kstp", "kbji")
    stats = distance_calculator.cache.stats()
    assert stats["hits"] == 1
    assert stats["size"] == 1


def test_home_coordinates_come_from_table(distance_calculator):
    assert distance_calculator.home_coordinates() == (44.9345, -93.0604)


def test_configured_home_base_uses_road_table(tmp_path, airport_service):
    """Legs from a configured home base are priced as home pairs"""
    path = tmp_path / "travel_config.json"
    path.write_text(json.dumps({"data": {"home_base": "KDLH"}}), encoding="utf-8")
    config_manager = ConfigManager(str(path))

    calculator = DistanceCalculator(airport_service, config_manager.get_home_base_codes())
    planner = ItineraryPlanner(calculator, config_manager.get("data", "home_base"))
    leg = planner.plan([TripStop("KBJI")])[0]

    assert calculator.is_home_base("KDLH")
    assert not calculator.is_home_base("KSTP")
    assert leg.origin_code == "KDLH"
    assert leg.drive_miles_one_way == 225
    assert calculator.home_coordinates() == (46.8421, -92.1936)
