"""Read a hours ledger CSV (legacy NSS Hours layout) back into records."""

import csv
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from io import StringIO

from src.core.exceptions import ValidationError
from src.modules.reports.ledger import CATEGORY_TO_SECTION, Section

VOL_START = 4  # volunteer data starts at column index 4
AGGREGATE_LABELS = {"Count", "Male", "Female"}
SECTION_TO_CATEGORY = {section.value: code for code, section in CATEGORY_TO_SECTION.items()}

_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_EU_DATE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


@dataclass
class ParsedVolunteer:
    column: int  # 0-based index among volunteer columns
    first_name: str
    last_name: str
    gender: str | None  # M | F | None


@dataclass
class ParsedEvent:
    row: int  # 0-based CSV row
    section: Section
    event_name: str
    start_date: date
    declared_hours: Decimal
    hours: dict[int, Decimal] = field(default_factory=dict)  # volunteer column -> hours

    @property
    def category_code(self) -> str:
        return SECTION_TO_CATEGORY[self.section.value]


@dataclass
class ParsedLedger:
    volunteers: list[ParsedVolunteer]
    events: list[ParsedEvent]


def parse_ledger_date(raw: str) -> date | None:
    """'3/14/2026', '14-3-2026' or '3/14/2026 to 3/16/2026' (first day wins)."""
    if not raw:
        return None
    s = raw.split(" to ")[0].strip()
    m = _US_DATE.match(s)
    if m:
        year, month, day = m.group(3), m.group(1), m.group(2)
    else:
        m = _EU_DATE.match(s)
        if not m:
            return None
        year, month, day = m.group(3), m.group(2), m.group(1)
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        # Matches the pattern but is not a calendar day, e.g. 2/30/2026
        return None


def _decimal(raw: str) -> Decimal | None:
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def _parse_volunteers(rows: list[list[str]]) -> list[ParsedVolunteer]:
    first_names = rows[0][VOL_START:]
    last_names = rows[1][VOL_START:]
    genders = rows[2][VOL_START:]
    volunteers = []
    for i, first in enumerate(first_names):
        first = first.strip()
        if not first or first in AGGREGATE_LABELS:
            break
        last = last_names[i].strip() if i < len(last_names) else ""
        gender_label = genders[i].strip() if i < len(genders) else ""
        volunteers.append(
            ParsedVolunteer(
                column=i,
                first_name=first,
                last_name=last,
                gender={"Male": "M", "Female": "F"}.get(gender_label),
            )
        )
    return volunteers


def parse_hours_ledger_csv(text: str) -> ParsedLedger:
    """
    Parse ledger CSV content.

    Volunteers come from the three header rows (until the Count column),
    events from the section blocks. Rows outside a section (TOTAL, summary
    rows) and rows without a usable date or positive declared hours are
    skipped. A non-numeric hours cell inside an event row is an error.
    """
    rows = list(csv.reader(StringIO(text)))
    if len(rows) < 3 or len(rows[0]) <= VOL_START:
        raise ValidationError("CSV does not have the hours ledger header rows")
    volunteers = _parse_volunteers(rows)

    events: list[ParsedEvent] = []
    section: Section | None = None
    for r, row in enumerate(rows[3:], start=3):
        cells = [c.strip() for c in row]
        if len(cells) < 4:
            continue
        if cells[2] in SECTION_TO_CATEGORY:
            section = Section(cells[2])
            continue
        if cells[2] == "TOTAL":
            section = None
            continue
        if section is None or not cells[1] or not cells[2] or not cells[3]:
            continue
        start = parse_ledger_date(cells[1])
        declared = _decimal(cells[3])
        if start is None or declared is None or declared <= 0:
            continue

        event = ParsedEvent(
            row=r,
            section=section,
            event_name=cells[2],
            start_date=start,
            declared_hours=declared,
        )
        for volunteer in volunteers:
            idx = VOL_START + volunteer.column
            raw = cells[idx] if idx < len(cells) else ""
            if not raw:
                continue
            value = _decimal(raw)
            if value is None:
                raise ValidationError(
                    f"Row {r + 1}: hours for {volunteer.first_name} are not a number: {raw!r}",
                    field="hours",
                )
            if value > 0:
                event.hours[volunteer.column] = value
        events.append(event)

    return ParsedLedger(volunteers=volunteers, events=events)
