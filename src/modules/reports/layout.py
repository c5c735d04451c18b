"""
Sheet layout and formulas for the hours ledger.

Two phases: plan_layout() fixes the row of every section block and summary
row, then the *_formulas() helpers turn that table into formula text. Every
formula carries the value it evaluates to. Counts come from ledger.py; sums
are added up from the stored cell numbers in formula order, the way a
spreadsheet recalculates them, so the cached result matches bit for bit.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from src.modules.reports.ledger import (
    EventLine,
    HoursLedger,
    Section,
    SectionBlock,
)
from src.shared.utils.columns import cell_ref, column_letter

# Header rows: first names, labels + last names, gender
FIRST_NAME_ROW = 1
LABEL_ROW = 2
GENDER_ROW = 3
HEADER_ROWS = 3

# Fixed columns (1-based)
MARKER_COL = 1
DATE_COL = 2
NAME_COL = 3
HOURS_COL = 4
FIRST_VOLUNTEER_COL = 5

GENDER_LABELS = {"M": "Male", "F": "Female"}


@dataclass(frozen=True)
class Formula:
    """Formula text paired with its computed result."""

    text: str
    value: int | float


@dataclass(frozen=True)
class SectionRowInfo:
    header_row: int
    first_row: int | None  # None for a section without events
    last_row: int | None
    total_row: int

    @property
    def event_rows(self) -> range:
        if self.first_row is None:
            return range(0)
        return range(self.first_row, self.last_row + 1)


@dataclass(frozen=True)
class LedgerLayout:
    volunteer_count: int
    sections: dict[Section, SectionRowInfo]
    summary_rows: tuple[int, ...]

    @property
    def last_volunteer_col(self) -> int:
        return FIRST_VOLUNTEER_COL + self.volunteer_count - 1

    @property
    def count_col(self) -> int:
        return FIRST_VOLUNTEER_COL + self.volunteer_count

    @property
    def male_col(self) -> int:
        return self.count_col + 1

    @property
    def female_col(self) -> int:
        return self.count_col + 2

    @property
    def last_row(self) -> int:
        return self.summary_rows[-1]

    def volunteer_col(self, index: int) -> int:
        return FIRST_VOLUNTEER_COL + index

    def numeric_cols(self) -> range:
        """Hours column followed by every volunteer column."""
        return range(HOURS_COL, self.count_col)


def plan_layout(ledger: HoursLedger) -> LedgerLayout:
    """
    Assign rows: three header rows, then per section a label row, its event
    rows, a TOTAL row and a blank row; then one more blank row and the
    summary rows, each preceded by a blank row.
    """
    sections: dict[Section, SectionRowInfo] = {}
    row = HEADER_ROWS + 1
    for block in ledger.sections:
        header_row = row
        row += 1
        if block.lines:
            first_row, last_row = row, row + len(block.lines) - 1
            row = last_row + 1
        else:
            first_row = last_row = None
        sections[block.section] = SectionRowInfo(header_row, first_row, last_row, row)
        row += 2  # TOTAL row, blank row

    summary_rows = []
    for _ in ledger.summary_rows:
        row += 1  # blank row before each summary row
        summary_rows.append(row)
        row += 1
    return LedgerLayout(
        volunteer_count=len(ledger.volunteers),
        sections=sections,
        summary_rows=tuple(summary_rows),
    )


def _volunteer_range(layout: LedgerLayout, row: int) -> str:
    return f"{cell_ref(FIRST_VOLUNTEER_COL, row)}:{cell_ref(layout.last_volunteer_col, row)}"


def _gender_range(layout: LedgerLayout) -> str:
    return (
        f"{cell_ref(FIRST_VOLUNTEER_COL, GENDER_ROW, absolute=True)}:"
        f"{cell_ref(layout.last_volunteer_col, GENDER_ROW, absolute=True)}"
    )


def count_formulas(
    layout: LedgerLayout, row: int, count: int, male: int, female: int
) -> dict[int, Formula]:
    """Count/Male/Female over the row's own volunteer cells."""
    if layout.volunteer_count == 0:
        return {
            layout.count_col: Formula("=0", 0),
            layout.male_col: Formula("=0", 0),
            layout.female_col: Formula("=0", 0),
        }
    values = _volunteer_range(layout, row)
    genders = _gender_range(layout)
    return {
        layout.count_col: Formula(f'=COUNTIF({values},">0")', count),
        layout.male_col: Formula(f'=COUNTIFS({values},">0",{genders},"Male")', male),
        layout.female_col: Formula(f'=COUNTIFS({values},">0",{genders},"Female")', female),
    }


def cell_number(value: Decimal | int | float) -> int | float:
    """Number as stored in a cell: int when integral, else the nearest double."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def sheet_sum(values: Sequence[Decimal | int | float]) -> int | float:
    """SUM over stored cell numbers, left to right in double precision."""
    total = 0.0
    for value in values:
        total += cell_number(value)
    return int(total) if total.is_integer() else total


def range_sum(column: int, info: SectionRowInfo, cells: Sequence[Decimal]) -> Formula:
    """Sum of a column over all event rows of a section; `cells` in row order."""
    if info.first_row is None:
        return Formula("=0", 0)
    letter = column_letter(column)
    return Formula(f"=SUM({letter}{info.first_row}:{letter}{info.last_row})", sheet_sum(cells))


def refs_sum(column: int, rows: Sequence[int], parts: Sequence[Formula]) -> Formula:
    """Sum of the same column in the given rows, whose formulas are `parts`."""
    refs = ",".join(cell_ref(column, r) for r in rows)
    return Formula(f"=SUM({refs})", sheet_sum([p.value for p in parts]))


def event_row_formulas(layout: LedgerLayout, row: int, line: EventLine) -> dict[int, Formula]:
    return count_formulas(layout, row, line.count, line.male, line.female)


def total_row_formulas(layout: LedgerLayout, block: SectionBlock) -> dict[int, Formula]:
    """Hours and every volunteer column summed over the section's event rows."""
    info = layout.sections[block.section]
    cells = {HOURS_COL: range_sum(HOURS_COL, info, [line.event.declared_hours for line in block.lines])}
    for i in range(layout.volunteer_count):
        cells[layout.volunteer_col(i)] = range_sum(
            layout.volunteer_col(i), info, [line.values[i] for line in block.lines]
        )
    return cells


def summary_rows_formulas(layout: LedgerLayout, ledger: HoursLedger) -> list[dict[int, Formula]]:
    """
    Formulas of every summary row, in order. A `range` row sums its section's
    event rows, a `refs` row sums earlier summary rows.
    """
    blocks = {block.section: block for block in ledger.sections}
    rows: list[dict[int, Formula]] = []
    for index, summary in enumerate(ledger.summary_rows):
        spec = summary.spec
        if spec.section is not None:
            cells = total_row_formulas(layout, blocks[spec.section])
        else:
            ref_rows = [layout.summary_rows[i] for i in spec.refs]
            cells = {
                col: refs_sum(col, ref_rows, [rows[i][col] for i in spec.refs])
                for col in layout.numeric_cols()
            }
        cells.update(
            count_formulas(layout, layout.summary_rows[index], summary.count, summary.male, summary.female)
        )
        rows.append(cells)
    return rows


def gender_label(gender: str | None) -> str:
    return GENDER_LABELS.get(gender or "", "")
