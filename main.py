"""
Command-line entry point for the Drive vs. Fly Travel Cost Calculator
"""
import sys
import logging
import argparse
from typing import List, Optional

from config_manager import ConfigManager
from models import ConfigurationMissingError, InvalidInputError, TravelCostError, TripStop, UnknownAirportError
from utils import resource_path, setup_logging, validate_numeric_input, validate_personnel


def _init_services(config_manager: ConfigManager):
    """Build services for one run from the loaded configuration"""
    from services import AirportService, DistanceCalculator, ItineraryPlanner, TripCostCalculator
    from export import ReportExporter

    rate_config = config_manager.build_rate_config()
    airport_service = AirportService(resource_path(config_manager.get("data", "airport_csv")))
    distance_calculator = DistanceCalculator(airport_service, config_manager.get_home_base_codes())
    planner = ItineraryPlanner(distance_calculator, config_manager.get("data", "home_base"))
    calculator = TripCostCalculator(rate_config)
    return rate_config, airport_service, distance_calculator, planner, calculator, ReportExporter()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compare the cost of driving and flying staff between airports")
    parser.add_argument("--config", default="travel_config.json", help="JSON file with rate overrides")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    report = subparsers.add_parser("report", help="Build a monthly report from a flight log CSV")
    report.add_argument("flight_log", help="Flight log CSV export")
    report.add_argument("--directors", help="JSON list of director names")
    report.add_argument("--out", help="Write the CSV report here instead of stdout")
    report.add_argument("--excel", help="Also write an Excel workbook")
    report.add_argument("--text", help="Also write a formatted text report")

    trip = subparsers.add_parser("trip", help="Price a trip from the home base")
    trip.add_argument("destinations", nargs="+", help="Airport codes, visited in order")
    trip.add_argument("--dwell", nargs="*", default=[], help="Hours at each destination")
    trip.add_argument("--num-directors", default="0")
    trip.add_argument("--num-managers", default="0")
    trip.add_argument("--num-generalists", default="0")
    trip.add_argument("--one-way", action="store_true", help="Single destination without the return leg")

    init = subparsers.add_parser("init-config", help="Write a sample configuration file")
    init.add_argument("path", nargs="?", help="Where to write the sample file")
    return parser


def run_report(args, config_manager: ConfigManager) -> int:
    from services import FlightReportService, PassengerClassifier, load_directors

    rate_config, _, distance_calculator, _, _, exporter = _init_services(config_manager)
    directors_path = args.directors or resource_path(config_manager.get("data", "directors_json"))
    classifier = PassengerClassifier(load_directors(directors_path))
    report_service = FlightReportService(rate_config, distance_calculator, classifier,
                                         config_manager.get_tail_numbers())

    with open(args.flight_log, 'r', encoding='utf-8-sig') as f:
        csv_text = f.read()

    result, summaries = report_service.generate_report(csv_text)

    for error in result.errors:
        print(f"skipped: {error}", file=sys.stderr)

    if args.out:
        if not exporter.export_to_csv(args.out, summaries):
            return 1
    else:
        print(exporter.to_csv_text(summaries))

    if args.excel:
        detail_df = report_service.legs_to_dataframe(result.classified)
        if not exporter.export_to_excel(args.excel, summaries, detail_df, result.errors):
            return 1
    if args.text and not exporter.export_to_text(args.text, summaries, result.errors):
        return 1
    return 0


def run_trip(args, config_manager: ConfigManager) -> int:
    from export import trip_breakdown_rows

    rate_config, _, _, planner, calculator, _ = _init_services(config_manager)
    personnel = validate_personnel(args.num_directors, args.num_managers, args.num_generalists)

    dwell = [validate_numeric_input(h, "dwell") for h in args.dwell]
    stops = [TripStop(code, dwell[i] if i < len(dwell) else 0.0) for i, code in enumerate(args.destinations)]
    legs = planner.plan(stops, round_trip=not args.one_way)
    result = calculator.compute_itinerary_cost(legs, personnel)

    print(" -> ".join([legs[0].origin_code] + [leg.destination_code for leg in legs]))
    section = None
    for row_section, item, calculation, amount in trip_breakdown_rows(result, rate_config):
        if row_section != section:
            section = row_section
            print(f"\n{section}")
            print("-" * 60)
        print(f"  {item:<24} {amount:>14}  {calculation}")

    aircraft_key, cheapest = result.cheapest_fly()
    print(f"\nDriving: ${result.drive.total_cost:,.0f}   "
          f"Cheapest flight ({rate_config.aircraft[aircraft_key].name}): ${cheapest.total_cost:,.0f}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    args = _build_parser().parse_args(argv)
    config_manager = ConfigManager(args.config)
    setup_logging(
        debug=args.debug or config_manager.get("app", "debug_mode", False),
        log_file=config_manager.get("logging", "file_name") if config_manager.get("logging", "file_enabled") else None,
        max_bytes=config_manager.get("logging", "max_file_size", 10485760),
        backup_count=config_manager.get("logging", "backup_count", 3),
    )

    for issue in config_manager.validate_config():
        logging.warning(f"Configuration issue: {issue}")

    try:
        if args.command == "report":
            return run_report(args, config_manager)
        if args.command == "trip":
            return run_trip(args, config_manager)
        path = config_manager.create_sample_config(args.path)
        return 0 if path else 1
    except InvalidInputError as e:
        print(f"Invalid input - {e}", file=sys.stderr)
        return 2
    except UnknownAirportError as e:
        print(str(e), file=sys.stderr)
        return 2
    except ConfigurationMissingError as e:
        logging.error(f"Cannot run calculation: {e}")
        return 1
    except (TravelCostError, OSError) as e:
        logging.exception("Calculation failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
