"""
Streamlit Web App for the Drive vs. Fly Travel Cost Calculator
"""
import streamlit as st
import pandas as pd
import io
import json
import os
import tempfile
from typing import List

# Import our modules
from config_manager import ConfigManager
from models import (ConfigurationMissingError, InvalidInputError,
                    TripStop, UnknownAirportError)
from services import (AirportService, DistanceCalculator, FlightReportService, ItineraryPlanner,
                      PassengerClassifier, TripCostCalculator, directors_from_json, load_directors)
from utils import resource_path, setup_logging, validate_personnel
from export import ReportExporter, trip_breakdown_dataframe


# Initialize services
@st.cache_resource
def init_services():
    """Initialize services with caching"""
    config_manager = ConfigManager()
    rate_config = config_manager.build_rate_config()
    airport_service = AirportService(resource_path(config_manager.get("data", "airport_csv")))
    distance_calculator = DistanceCalculator(airport_service, config_manager.get_home_base_codes())
    planner = ItineraryPlanner(distance_calculator, config_manager.get("data", "home_base"))
    calculator = TripCostCalculator(rate_config)
    exporter = ReportExporter()
    return config_manager, rate_config, airport_service, distance_calculator, planner, calculator, exporter


def render_trip_calculator(rate_config, airport_service, planner, calculator):
    """Trip calculator page: home base -> destinations -> home base"""
    st.subheader("Trip Calculator")

    col1, col2, col3 = st.columns(3)
    with col1:
        num_directors = st.number_input(rate_config.roles["director"].short_label, min_value=0, value=0, step=1)
    with col2:
        num_managers = st.number_input(rate_config.roles["manager"].short_label, min_value=0, value=0, step=1)
    with col3:
        num_generalists = st.number_input(rate_config.roles["generalist"].short_label, min_value=0, value=1, step=1)

    airports = airport_service.all_airports()
    labels = {a.label: a.code for a in airports}
    home = airport_service.get_airport(planner.home_base)
    st.markdown(f"**Origin:** {home.label}")

    pair_count = st.number_input("Destinations", min_value=1, max_value=max_stops(planner),
                                 value=1, step=1)
    round_trip = True
    if pair_count == 1:
        round_trip = st.toggle("Round trip", value=True)

    stops: List[TripStop] = []
    for i in range(int(pair_count)):
        c1, c2 = st.columns([3, 1])
        with c1:
            choice = st.selectbox(f"Destination {i + 1}", options=[""] + list(labels.keys()), key=f"dest_{i}")
        with c2:
            dwell = st.number_input("Hours at destination", min_value=0.0, value=0.0, step=0.5, key=f"dwell_{i}")
        if choice:
            stops.append(TripStop(labels[choice], dwell))

    if len(stops) < int(pair_count):
        st.info("Select a destination for every stop to see results.")
        return

    try:
        personnel = validate_personnel(num_directors, num_managers, num_generalists)
        legs = planner.plan(stops, round_trip=round_trip)
    except (InvalidInputError, UnknownAirportError) as e:
        st.error(str(e))
        return

    result = calculator.compute_itinerary_cost(legs, personnel)

    heading = "Multiple Legs" if len(legs) > 1 else ("Round Trip" if round_trip else "One Way")
    st.markdown(f"### Results ({heading})")

    metric_cols = st.columns(1 + len(result.fly))
    metric_cols[0].metric("Driving", f"${result.drive.total_cost:,.0f}")
    for col, (key, fly) in zip(metric_cols[1:], result.fly.items()):
        delta = result.drive.total_cost - fly.total_cost
        col.metric(rate_config.aircraft[key].name, f"${fly.total_cost:,.0f}",
                   delta=f"${delta:,.0f} vs. driving")

    st.dataframe(trip_breakdown_dataframe(result, rate_config), use_container_width=True, hide_index=True)


def max_stops(planner: ItineraryPlanner) -> int:
    # The return leg takes one of the city pairs
    return max(1, planner.max_city_pairs - 1)


def render_flight_report(config_manager, rate_config, distance_calculator, exporter):
    """Flight report page: upload a flight log, get monthly totals"""
    st.subheader("Flight Report")

    log_file = st.file_uploader("Flight log (CSV)", type=["csv", "txt"])
    directors_file = st.file_uploader("Directors list (JSON, optional)", type=["json"])

    if log_file is None:
        st.info("Upload a flight log to build the monthly report.")
        return

    if directors_file is not None:
        try:
            directors = directors_from_json(json.loads(directors_file.getvalue().decode("utf-8-sig")))
        except ValueError as e:
            st.error(f"Could not read directors list: {e}")
            return
    else:
        directors = load_directors(resource_path(config_manager.get("data", "directors_json")))

    classifier = PassengerClassifier(directors)
    report_service = FlightReportService(rate_config, distance_calculator, classifier,
                                         config_manager.get_tail_numbers())

    csv_text = log_file.getvalue().decode("utf-8-sig", errors="replace")
    with st.spinner("Processing flight log..."):
        result, summaries = report_service.generate_report(csv_text)

    st.success(f"Processed {len(result.classified)} flight legs across {len(summaries)} months")

    if result.errors:
        with st.expander(f"⚠️ {len(result.errors)} legs skipped"):
            for error in result.errors:
                st.write(error)

    if not summaries:
        st.warning("No dated flight legs to report.")
        return

    rows = exporter.to_rows(summaries)
    report_df = pd.DataFrame(rows[1:], columns=rows[0])
    st.dataframe(report_df, use_container_width=True, hide_index=True)

    detail_df = report_service.legs_to_dataframe(result.classified)
    with st.expander("Flight leg details"):
        st.dataframe(detail_df, use_container_width=True, hide_index=True)

    st.download_button("Download CSV", exporter.to_csv_text(summaries),
                       file_name="flight_report.csv", mime="text/csv")

    if exporter.excel_available:
        with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as tmp:
            path = tmp.name
        try:
            if exporter.export_to_excel(path, summaries, detail_df, result.errors):
                with open(path, "rb") as f:
                    excel_bytes = io.BytesIO(f.read())
                st.download_button("Download Excel", excel_bytes, file_name="flight_report.xlsx",
                                   mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
        finally:
            os.unlink(path)


def main():
    """Main Streamlit app"""
    st.set_page_config(
        page_title="Drive vs. Fly Cost Calculator",
        page_icon="✈️",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    st.title("✈️ Drive vs. Fly Cost Calculator")
    st.markdown("---")

    try:
        (config_manager, rate_config, airport_service, distance_calculator,
         planner, calculator, exporter) = init_services()
    except ConfigurationMissingError as e:
        st.error(f"Configuration error: {e}")
        return
    except IOError as e:
        st.error(f"Could not load airport data: {e}")
        return

    with st.sidebar:
        st.header("Rates")
        debug_mode = st.checkbox("Debug Mode", value=False)
        setup_logging(debug=debug_mode, log_file=None)

        st.write(f"Driving: ${rate_config.driving_cost_per_mile}/mile at {rate_config.driving_speed_mph} mph")
        st.write(f"Vehicle capacity: {rate_config.vehicle_capacity}")
        st.write(f"Lodging: ${rate_config.accommodation_per_person} per person per night")
        for profile in rate_config.aircraft.values():
            st.write(f"{profile.name}: ${profile.cost_per_mile}/mile, cruise {profile.cruise_speed_mph} mph")

        issues = config_manager.validate_config()
        for issue in issues:
            st.warning(issue)

    trip_tab, report_tab = st.tabs(["Trip Calculator", "Flight Report"])
    with trip_tab:
        render_trip_calculator(rate_config, airport_service, planner, calculator)
    with report_tab:
        render_flight_report(config_manager, rate_config, distance_calculator, exporter)


if __name__ == "__main__":
    main()
