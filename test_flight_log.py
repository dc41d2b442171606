"""
Tests for flight log CSV parsing and cleaning
"""
from datetime import datetime

import pytest

from services import FlightLogParser


HEADER = "DATE,TAIL#,ORIGIN,DESTINATION,MILES,FLIGHT TIME,PASSENGER 1,PASSENGER 2,PURPOSE"


@pytest.fixture
def parser():
    return FlightLogParser()


def _log(*rows, header=HEADER, banner=()):
    return "\n".join(list(banner) + [header] + list(rows))


def test_header_found_below_banner_rows(parser):
    text = _log('01/15/2024,55MN,KSTP,KDLH,140,1.1,"Smith, John",,Meeting',
                banner=["Aviation Section Flight Log", "Exported 02/01/2024", ""])
    rows = parser.parse_csv(text)
    assert len(rows) == 1
    assert rows[0]["date"] == "01/15/2024"
    assert rows[0]["tail#"] == "55MN"


def test_quoted_fields_keep_commas(parser):
    rows = parser.parse_csv(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,"Smith, John","Doe, Jane","Board, quarterly"'))
    assert rows[0]["passenger 1"] == "Smith, John"
    assert rows[0]["passenger 2"] == "Doe, Jane"
    assert rows[0]["purpose"] == "Board, quarterly"


def test_unquoted_last_first_name_is_reassembled(parser):
    rows = parser.parse_csv(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,Smith, John,"Doe, Jane",Meeting'))
    row = rows[0]
    assert row["passenger 1"] == "Smith, John"
    assert row["passenger 2"] == "Doe, Jane"
    assert row["purpose"] == "Meeting"


def test_all_caps_next_value_is_not_merged(parser):
    rows = parser.parse_csv(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,SMITH, JOHN,'))
    assert rows[0]["passenger 1"] == "SMITH"
    assert rows[0]["passenger 2"] == "JOHN"


def test_short_rows_fill_missing_columns(parser):
    rows = parser.parse_csv(_log("01/15/2024,55MN,KSTP,KDLH"))
    assert rows[0]["passenger 1"] == ""
    assert rows[0]["purpose"] == ""


def test_empty_text(parser):
    assert parser.parse_csv("") == []
    assert parser.clean("\n\n") == []


def test_clean_builds_records(parser):
    records = parser.clean(_log('01/15/2024,55mn,kstp,kdlh,140,1.1 hrs,"Smith, John","Doe, Jane",Meeting'))
    assert len(records) == 1
    record = records[0]
    assert record.date == datetime(2024, 1, 15)
    assert record.origin == "KSTP"
    assert record.destination == "KDLH"
    assert record.tail_number == "55mn"
    assert record.miles_flown == 140
    assert record.flight_time_hours == 1.1
    assert record.passenger_names == ("Smith, John", "Doe, Jane")
    assert record.purpose == "Meeting"
    assert record.route == "KSTP-KDLH"


def test_unparseable_numbers_default_to_zero(parser):
    records = parser.clean(_log('01/15/2024,55MN,KSTP,KDLH,n/a,,"Smith, John",,'))
    assert records[0].miles_flown == 0
    assert records[0].flight_time_hours == 0


def test_invalid_date_is_kept_without_a_date(parser):
    records = parser.clean(_log('13/45/2024,55MN,KSTP,KDLH,140,1.1,"Smith, John",,'))
    assert len(records) == 1
    assert records[0].date is None
    assert not records[0].date_valid
    assert records[0].date_str == "13/45/2024"


@pytest.mark.parametrize("origin,destination", [
    ("KSTP", "MSP"), ("STP", "KSTP"), ("MSP", "MSP"), ("kstp", "stp"),
])
def test_same_base_legs_are_dropped(parser, origin, destination):
    text = _log(f'01/15/2024,55MN,{origin},{destination},10,0.2,"Smith, John",,Positioning')
    assert parser.clean(text) == []


def test_legs_leaving_the_base_are_kept(parser):
    text = _log('01/15/2024,55MN,MSP,KDLH,140,1.1,"Smith, John",,',
                '01/16/2024,55MN,KDLH,KSTP,140,1.1,"Smith, John",,')
    assert [r.route for r in parser.clean(text)] == ["MSP-KDLH", "KDLH-KSTP"]


@pytest.mark.parametrize("passengers", [
    ",", "DEADHEAD,", "TRAINING,AERONAUTICS", '"Deadhead, Miles",', '"Training, Aeronau",MILES',
])
def test_administrative_rows_are_dropped(parser, passengers):
    text = _log(f"01/15/2024,55MN,KSTP,KDLH,140,1.1,{passengers},")
    assert parser.clean(text) == []


def test_administrative_names_are_removed_from_passenger_list(parser):
    records = parser.clean(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,"Smith, John",DEADHEAD,'))
    assert records[0].passenger_names == ("Smith, John",)


def test_navaids_only_flight_is_dropped(parser):
    dropped = parser.clean(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,"Kremer, Nicholas",,NavAids'))
    kept = parser.clean(_log('01/15/2024,55MN,KSTP,KDLH,140,1.1,"Kremer, Nicholas","Smith, John",NavAids'))
    assert dropped == []
    assert kept[0].passenger_count == 2


def test_unnumbered_passenger_column_is_ignored(parser):
    header = "DATE,TAIL#,ORIGIN,DESTINATION,PASSENGER,PASSENGER 1,PASSENGER 2"
    text = _log('01/15/2024,55MN,KSTP,KDLH,"Doe, Jane","Doe, Jane","Smith, John"', header=header)
    assert parser.clean(text)[0].passenger_names == ("Doe, Jane", "Smith, John")


def test_departure_and_arrival_columns(parser):
    header = "DATE,TAIL,DEPARTURE,ARRIVAL,PASSENGER 1"
    records = parser.clean(_log('2024-03-02,N12MN,KRST,KDLH,"Smith, John"', header=header))
    assert records[0].route == "KRST-KDLH"
    assert records[0].tail_number == "N12MN"
    assert records[0].date == datetime(2024, 3, 2)


@pytest.mark.parametrize("name,valid", [
    ("Smith, John", True), ("MILES", False), ("  deadhead ", False), ("", False), (None, False),
])
def test_is_valid_passenger(name, valid):
    assert FlightLogParser.is_valid_passenger(name) is valid
