"""Export the hours ledger to Excel (XLSX) with live formulas."""

from decimal import Decimal
from io import BytesIO
import structlog
import xlsxwriter
from xlsxwriter.exceptions import XlsxWriterException

from src.core.exceptions import ReportSerializationError
from src.modules.reports.layout import (
    DATE_COL,
    FIRST_NAME_ROW,
    FIRST_VOLUNTEER_COL,
    GENDER_ROW,
    HOURS_COL,
    LABEL_ROW,
    MARKER_COL,
    NAME_COL,
    Formula,
    LedgerLayout,
    cell_number,
    event_row_formulas,
    gender_label,
    plan_layout,
    summary_rows_formulas,
    total_row_formulas,
)
from src.modules.reports.ledger import HoursLedger

logger = structlog.get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# xlsxwriter write_* return codes
_WRITE_ERRORS = {
    -1: "cell is outside the worksheet limits",
    -2: "string is longer than 32767 characters",
}


class _SheetWriter:
    """
    Thin wrapper over an xlsxwriter worksheet taking 1-based rows/columns,
    matching the layout module. Any rejected write aborts the export.
    """

    def __init__(self, workbook: xlsxwriter.Workbook, title: str):
        self.workbook = workbook
        self.ws = workbook.add_worksheet(title)
        self.bold = workbook.add_format({"bold": True})
        self.header = workbook.add_format({"bold": True, "bg_color": "#D9E1F2", "border": 1})
        self.header_merged = workbook.add_format(
            {"bold": True, "bg_color": "#D9E1F2", "border": 1, "valign": "top"}
        )
        self.section = workbook.add_format({"bold": True, "bg_color": "#FFF2CC"})
        self.total = workbook.add_format({"bold": True, "top": 1})
        self.summary = workbook.add_format({"bold": True, "bg_color": "#E2EFDA"})
        self.date = workbook.add_format({"num_format": "m/d/yyyy"})

    def _check(self, code: int, row: int, col: int) -> None:
        if code is not None and code < 0:
            reason = _WRITE_ERRORS.get(code, f"writer returned {code}")
            raise ReportSerializationError("xlsx", f"row {row}, column {col}: {reason}")

    def string(self, row: int, col: int, value: str, fmt=None) -> None:
        self._check(self.ws.write_string(row - 1, col - 1, value, fmt), row, col)

    def number(self, row: int, col: int, value, fmt=None) -> None:
        self._check(self.ws.write_number(row - 1, col - 1, cell_number(value), fmt), row, col)

    def hours(self, row: int, col: int, value: Decimal, fmt=None) -> None:
        """Contribution cell; zero stays blank."""
        if value:
            self.number(row, col, value, fmt)
        elif fmt is not None:
            self._check(self.ws.write_blank(row - 1, col - 1, None, fmt), row, col)

    def date_cell(self, row: int, col: int, value) -> None:
        self._check(self.ws.write_datetime(row - 1, col - 1, value, self.date), row, col)

    def formulas(self, row: int, cells: dict[int, Formula], fmt=None) -> None:
        for col, formula in cells.items():
            code = self.ws.write_formula(
                row - 1, col - 1, formula.text, fmt, formula.value
            )
            self._check(code, row, col)

    def merge(self, first_row: int, col: int, last_row: int, value: str, fmt) -> None:
        code = self.ws.merge_range(first_row - 1, col - 1, last_row - 1, col - 1, value, fmt)
        self._check(code, first_row, col)


def _write_header(sheet: _SheetWriter, ledger: HoursLedger, layout: LedgerLayout) -> None:
    sheet.string(LABEL_ROW, DATE_COL, "Date", sheet.header)
    sheet.string(LABEL_ROW, NAME_COL, "Event Name", sheet.header)
    sheet.string(LABEL_ROW, HOURS_COL, "Hours", sheet.header)
    for i, volunteer in enumerate(ledger.volunteers):
        col = layout.volunteer_col(i)
        sheet.string(FIRST_NAME_ROW, col, volunteer.first_name, sheet.header)
        sheet.string(LABEL_ROW, col, volunteer.last_name, sheet.header)
        sheet.string(GENDER_ROW, col, gender_label(volunteer.gender), sheet.header)
    # Labels span all three header rows; the value stays in the top cell
    for col, label in (
        (layout.count_col, "Count"),
        (layout.male_col, "Male"),
        (layout.female_col, "Female"),
    ):
        sheet.merge(FIRST_NAME_ROW, col, GENDER_ROW, label, sheet.header_merged)


def _write_sections(sheet: _SheetWriter, ledger: HoursLedger, layout: LedgerLayout) -> None:
    for block in ledger.sections:
        info = layout.sections[block.section]
        sheet.string(info.header_row, NAME_COL, block.section.value, sheet.section)
        for row, line in zip(info.event_rows, block.lines):
            sheet.date_cell(row, DATE_COL, line.event.start_date)
            sheet.string(row, NAME_COL, line.event.event_name)
            sheet.number(row, HOURS_COL, line.event.declared_hours)
            for i, value in enumerate(line.values):
                sheet.hours(row, layout.volunteer_col(i), value)
            sheet.formulas(row, event_row_formulas(layout, row, line))
        sheet.string(info.total_row, NAME_COL, "TOTAL", sheet.total)
        sheet.formulas(info.total_row, total_row_formulas(layout, block), sheet.total)


def _write_summary(sheet: _SheetWriter, ledger: HoursLedger, layout: LedgerLayout) -> None:
    rows = zip(layout.summary_rows, ledger.summary_rows, summary_rows_formulas(layout, ledger))
    for row, summary, cells in rows:
        sheet.number(row, MARKER_COL, 0, sheet.summary)
        sheet.string(row, DATE_COL, summary.label, sheet.summary)
        sheet.formulas(row, cells, sheet.summary)


def _set_columns(sheet: _SheetWriter, layout: LedgerLayout) -> None:
    ws = sheet.ws
    ws.set_column(MARKER_COL - 1, MARKER_COL - 1, 4)
    ws.set_column(DATE_COL - 1, DATE_COL - 1, 12)
    ws.set_column(NAME_COL - 1, NAME_COL - 1, 30)
    ws.set_column(HOURS_COL - 1, HOURS_COL - 1, 8)
    if layout.volunteer_count:
        ws.set_column(FIRST_VOLUNTEER_COL - 1, layout.last_volunteer_col - 1, 12)
    ws.set_column(layout.count_col - 1, layout.female_col - 1, 8)
    ws.freeze_panes(GENDER_ROW, HOURS_COL)


def build_hours_ledger_xlsx(ledger: HoursLedger, title: str = "NSS Hours") -> bytes:
    """Build XLSX bytes: one sheet, same rows/columns as the CSV export."""
    layout = plan_layout(ledger)
    buf = BytesIO()
    try:
        with xlsxwriter.Workbook(buf, {"in_memory": True}) as workbook:
            sheet = _SheetWriter(workbook, title)
            _write_header(sheet, ledger, layout)
            _write_sections(sheet, ledger, layout)
            _write_summary(sheet, ledger, layout)
            _set_columns(sheet, layout)
    except XlsxWriterException as exc:
        raise ReportSerializationError("xlsx", str(exc)) from exc
    content = buf.getvalue()
    logger.info("hours_ledger.xlsx_built", size=len(content), rows=layout.last_row)
    return content
