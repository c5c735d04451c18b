"""Export the hours ledger as CSV in the legacy NSS Hours layout."""

import csv
from datetime import date
from decimal import Decimal
from io import StringIO

import structlog

from src.core.exceptions import ReportSerializationError
from src.modules.reports.layout import gender_label
from src.modules.reports.ledger import HoursLedger

logger = structlog.get_logger(__name__)


def format_date(d: date) -> str:
    """m/d/yyyy without zero padding, as the legacy sheet has it."""
    return f"{d.month}/{d.day}/{d.year}"


def format_hours(value: Decimal | int) -> str:
    """4 -> '4', 1.50 -> '1.5'."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def _hours_cells(values) -> list[str]:
    """Volunteer cells: zero/absent renders as an empty field."""
    return [format_hours(v) if v else "" for v in values]


def build_hours_ledger_csv(ledger: HoursLedger) -> str:
    """
    Build CSV content for the hours ledger.

    Rows: first names (+ Count/Male/Female), labels with last names, genders;
    per section a label row, event rows, TOTAL and a blank row; then the
    summary rows, each after a blank row.
    """
    vols = ledger.volunteers
    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")

    writer.writerow(["", "", "", "", *[v.first_name for v in vols], "Count", "Male", "Female"])
    writer.writerow(["", "Date", "Event Name", "Hours", *[v.last_name for v in vols]])
    writer.writerow(["", "", "", "", *[gender_label(v.gender) for v in vols]])

    for block in ledger.sections:
        writer.writerow(["", "", block.section.value, ""])
        for line in block.lines:
            writer.writerow([
                "",
                format_date(line.event.start_date),
                line.event.event_name,
                format_hours(line.event.declared_hours),
                *_hours_cells(line.values),
                str(line.count),
                str(line.male),
                str(line.female),
            ])
        # TOTAL has no Count/Male/Female
        writer.writerow(["", "", "TOTAL", format_hours(block.declared_hours), *_hours_cells(block.totals)])
        writer.writerow([])

    for summary in ledger.summary_rows:
        writer.writerow([])
        writer.writerow([
            "0",
            summary.label,
            "",
            format_hours(summary.declared_hours),
            *_hours_cells(summary.values),
            str(summary.count),
            str(summary.male),
            str(summary.female),
        ])

    content = out.getvalue()
    try:
        content.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ReportSerializationError("csv", f"text is not valid UTF-8 ({exc.reason})") from exc
    logger.info("hours_ledger.csv_built", size=len(content))
    return content
