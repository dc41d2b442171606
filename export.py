"""
Export functionality for travel cost reports
Supports CSV, Excel, and formatted text exports
"""
import io
import csv
import math
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple
from datetime import datetime
import pandas as pd

try:
    # Optional: Try to import openpyxl for Excel export
    import openpyxl
    from openpyxl.styles import Font
    from openpyxl.utils.dataframe import dataframe_to_rows
    EXCEL_AVAILABLE = True
except ImportError:
    EXCEL_AVAILABLE = False

from models import MonthlySummary, RateConfig, TripCostResult


def round_half_up(value: float) -> int:
    """Round to the nearest whole unit, halves round toward +infinity (matches JS Math.round)"""
    return int(math.floor(value + 0.5))


# (label, value getter, rounded at render time)
METRIC_ROWS: List[Tuple[str, Callable[[MonthlySummary], Any], bool]] = [
    ('Number of Directors', lambda m: m.directors, False),
    ('Number of Managers', lambda m: m.managers, False),
    ('Number of Generalists', lambda m: m.generalists, False),
    ('Total Miles Flown', lambda m: m.total_miles_fly, True),
    ('Total Miles if Driven', lambda m: m.total_miles_drive, True),
    ('Total Cost of Driving', lambda m: m.total_cost_drive, True),
    ('Total Cost of Flying', lambda m: m.total_cost_fly, True),
    ('Savings (Driving - Flying)', lambda m: m.savings, True),
]


class ReportExporter:
    """Class for exporting monthly drive vs. fly reports in various formats"""

    def __init__(self):
        self.excel_available = EXCEL_AVAILABLE
        self.logger = logging.getLogger(__name__)

    def to_rows(self, summaries: Sequence[MonthlySummary]) -> List[List[Any]]:
        """One row per metric, one column per month plus an all-months total"""
        rows = [['Metric'] + [m.month for m in summaries] + ['Total']]
        for label, getter, rounded in METRIC_ROWS:
            values = [getter(m) for m in summaries]
            total = sum(values)
            if rounded:
                rows.append([label] + [round_half_up(v) for v in values] + [round_half_up(total)])
            else:
                rows.append([label] + [int(v) for v in values] + [int(total)])
        return rows

    def to_csv_text(self, summaries: Sequence[MonthlySummary]) -> str:
        """Render the monthly report as CSV text"""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        writer.writerows(self.to_rows(summaries))
        return buffer.getvalue().rstrip('\n')

    def export_to_csv(self, filepath: str, summaries: Sequence[MonthlySummary]) -> bool:
        """
        Export report to CSV format

        Args:
            filepath: Output file path
            summaries: Monthly summaries in month order

        Returns:
            True if successful, False otherwise
        """
        try:
            with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
                csvfile.write(self.to_csv_text(summaries) + '\n')
            return True
        except OSError as e:
            self.logger.error(f"Could not write CSV report {filepath}: {e}")
            return False

    def export_to_excel(self, filepath: str, summaries: Sequence[MonthlySummary],
                        detail_df: Optional[pd.DataFrame] = None,
                        errors: Optional[Sequence[str]] = None) -> bool:
        """
        Export report to Excel format with a summary sheet and optional detail sheets

        Returns:
            True if successful, False otherwise
        """
        if not self.excel_available:
            self.logger.warning("openpyxl is not installed, Excel export unavailable")
            return False

        try:
            workbook = openpyxl.Workbook()
            self._create_summary_sheet(workbook, summaries)

            if detail_df is not None and not detail_df.empty:
                self._create_details_sheet(workbook, detail_df)

            if errors:
                ws = workbook.create_sheet("Errors")
                ws.append(["Skipped flight legs"])
                ws["A1"].font = Font(bold=True)
                for error in errors:
                    ws.append([error])

            workbook.save(filepath)
            return True

        except OSError as e:
            self.logger.error(f"Could not write Excel report {filepath}: {e}")
            return False

    def _create_summary_sheet(self, workbook, summaries: Sequence[MonthlySummary]):
        """Create monthly summary sheet in Excel workbook"""
        ws = workbook.active
        ws.title = "Monthly Summary"

        for row in self.to_rows(summaries):
            ws.append(row)

        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in ws.iter_rows(min_row=2, max_col=1):
            row[0].font = Font(bold=True)

        self._autosize(ws, 40)

    def _create_details_sheet(self, workbook, detail_df: pd.DataFrame):
        """Create flight leg details sheet"""
        ws = workbook.create_sheet("Flight Legs")

        for r in dataframe_to_rows(detail_df, index=False, header=True):
            ws.append(r)

        for cell in ws[1]:
            cell.font = Font(bold=True)

        self._autosize(ws, 30)

    @staticmethod
    def _autosize(ws, limit: int):
        for column in ws.columns:
            max_length = 0
            for cell in column:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))
            ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, limit)

    def export_to_text(self, filepath: str, summaries: Sequence[MonthlySummary],
                       errors: Optional[Sequence[str]] = None) -> bool:
        """
        Export report to formatted text file

        Returns:
            True if successful, False otherwise
        """
        rows = self.to_rows(summaries)
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("=" * 60 + "\n")
                f.write("DRIVE VS. FLY MONTHLY COST REPORT\n")
                f.write("=" * 60 + "\n\n")
                f.write(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write(f"Months: {len(summaries)}\n\n")

                for row in rows:
                    label, values = row[0], row[1:]
                    f.write(f"{label:<30}" + "".join(f"{str(v):>12}" for v in values) + "\n")

                if errors:
                    f.write("\nSKIPPED FLIGHT LEGS\n")
                    f.write("-" * 60 + "\n")
                    for error in errors:
                        f.write(f"{error}\n")

                f.write("-" * 60 + "\n")
            return True

        except OSError as e:
            self.logger.error(f"Could not write text report {filepath}: {e}")
            return False


def trip_breakdown_rows(result: TripCostResult, rates: RateConfig) -> List[Tuple[str, str, str, str]]:
    """Rows (section, item, calculation, amount) describing a trip cost result"""
    drive = result.drive
    rows = []

    for tag, count in result.personnel.as_dict().items():
        role = rates.roles[tag]
        rows.append(("Employee Costs per Hour", role.short_label,
                     f"{role.hourly_compensation:.2f}/hr cost x {role.value_factor} Value Factor x {count} traveling",
                     f"${result.role_costs_per_hour[tag]:,.2f}/hr"))
    rows.append(("Employee Costs per Hour", "Employee Total", "",
                 f"${result.employee_cost_per_hour:,.2f}/hr"))

    rows.extend([
        ("Driving Costs", "Travel Hours",
         f"{drive.miles:.1f} total miles / {rates.driving_speed_mph} mph", f"{drive.travel_hours:.2f} hrs"),
        ("Driving Costs", "Employee Cost",
         f"${result.employee_cost_per_hour:,.2f}/hr x {drive.travel_hours:.2f} hours traveling",
         f"${drive.employee_cost:,.0f}"),
        ("Driving Costs", "Vehicles Needed",
         f"{drive.travelers} employees traveling / {rates.vehicle_capacity} per vehicle", f"{drive.units_needed}"),
        ("Driving Costs", "Vehicle Cost",
         f"{drive.miles:.1f} miles x ${rates.driving_cost_per_mile}/mile x {drive.units_needed} vehicles",
         f"${drive.distance_cost:,.0f}"),
        ("Driving Costs", "Lodging",
         f"{drive.travelers} employees x ${rates.accommodation_per_person} per night x {drive.overnight_count} nights",
         f"${drive.lodging_cost:,.0f}"),
        ("Driving Costs", "Driving Total", "", f"${drive.total_cost:,.0f}"),
    ])

    for key, fly in result.fly.items():
        profile = rates.aircraft[key]
        section = f"Flying Costs - {profile.name}"
        segments = fly.segments
        rows.extend([
            (section, "Travel Hours",
             f"{fly.miles:.1f} total miles, {segments.departure_miles:.1f} miles @ {profile.departure_speed_mph} mph"
             f" + {segments.cruise_miles:.1f} miles @ {profile.cruise_speed_mph} mph"
             f" + {segments.approach_miles:.1f} miles @ {profile.approach_speed_mph} mph",
             f"{fly.travel_hours:.2f} hrs"),
            (section, "Aircraft Cost", f"{fly.miles:.1f} miles x ${profile.cost_per_mile}/mile",
             f"${fly.distance_cost:,.0f}"),
            (section, "Lodging",
             f"{fly.travelers} travelers x ${rates.accommodation_per_person} per night x {fly.overnight_count} nights",
             f"${fly.lodging_cost:,.0f}"),
            (section, f"{profile.name} Total", "", f"${fly.total_cost:,.0f}"),
        ])
    return rows


def trip_breakdown_dataframe(result: TripCostResult, rates: RateConfig) -> pd.DataFrame:
    return pd.DataFrame(trip_breakdown_rows(result, rates),
                        columns=['Section', 'Item', 'Calculation', 'Amount'])
