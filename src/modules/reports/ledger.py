"""
Hours ledger: pivot of attended hours, events x volunteers.

Rows are events grouped into fixed sections, columns are volunteers. Each
section gets a TOTAL row, and six summary rows roll the sections up into the
legacy NSS report layout. Pure computation; serializers live in csv_export
and excel_export.
"""

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

import structlog

from src.core.exceptions import DataIntegrityError
from src.modules.events.models import ATTENDED_STATUSES
from src.modules.reports.schemas import (
    EventRow,
    HoursLedgerSnapshot,
    ParticipationRow,
    VolunteerRow,
)
from src.modules.volunteers.models import Gender

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


class Section(StrEnum):
    """Report sections, in display order."""

    AREA_BASED_1 = "Area Based - 1"
    AREA_BASED_2 = "Area Based - 2"
    UNIVERSITY_BASED = "University Based"
    COLLEGE_BASED = "College Based"


SECTION_ORDER: tuple[Section, ...] = tuple(Section)

CATEGORY_TO_SECTION: dict[str, Section] = {
    "area-based-1": Section.AREA_BASED_1,
    "area-based-2": Section.AREA_BASED_2,
    "university-based": Section.UNIVERSITY_BASED,
    "college-based": Section.COLLEGE_BASED,
}

DEFAULT_YEAR_ORDER = ("SE", "TE")


@dataclass(frozen=True)
class SummaryRowSpec:
    """Static definition of a summary row: sums a section, or earlier summary rows."""

    label: str
    section: Section | None = None
    refs: tuple[int, ...] = ()

    @property
    def strategy(self) -> str:
        return "range" if self.section is not None else "refs"


SUMMARY_PLAN: tuple[SummaryRowSpec, ...] = (
    SummaryRowSpec("Area Based 1 Hours", section=Section.AREA_BASED_1),
    SummaryRowSpec("Area Based 2 Hours", section=Section.AREA_BASED_2),
    SummaryRowSpec("Total Area Based (60)", refs=(0, 1)),
    SummaryRowSpec("University Hours", section=Section.UNIVERSITY_BASED),
    SummaryRowSpec("College Hours", section=Section.COLLEGE_BASED),
    SummaryRowSpec("Total Hours (120)", refs=(2, 3, 4)),
)


@dataclass(frozen=True)
class EventLine:
    """One event row: attended hours per volunteer plus gender counts."""

    event: EventRow
    values: tuple[Decimal, ...]
    count: int
    male: int
    female: int


@dataclass
class SectionBlock:
    """Events of one section and the running per-volunteer totals."""

    section: Section
    lines: list[EventLine] = field(default_factory=list)
    totals: list[Decimal] = field(default_factory=list)
    declared_hours: Decimal = ZERO


@dataclass(frozen=True)
class SummaryRow:
    spec: SummaryRowSpec
    declared_hours: Decimal
    values: tuple[Decimal, ...]
    count: int
    male: int
    female: int

    @property
    def label(self) -> str:
        return self.spec.label


@dataclass
class HoursLedger:
    volunteers: list[VolunteerRow]
    sections: list[SectionBlock]
    summary_rows: list[SummaryRow]
    excluded_event_ids: list[int] = field(default_factory=list)

    def section(self, section: Section) -> SectionBlock:
        for block in self.sections:
            if block.section == section:
                return block
        raise KeyError(section)


def volunteer_sort_key(volunteer: VolunteerRow, year_order: Sequence[str] = DEFAULT_YEAR_ORDER):
    """
    Column order: year rank (unknown years last), then first name, then last
    name, ignoring case. Exact spelling breaks ties so the order is total.
    """
    try:
        rank = list(year_order).index(volunteer.year)
    except ValueError:
        rank = len(year_order)
    first, last = volunteer.first_name, volunteer.last_name
    return (rank, first.casefold(), last.casefold(), first, last)


def sort_volunteers(
    volunteers: Sequence[VolunteerRow], year_order: Sequence[str] = DEFAULT_YEAR_ORDER
) -> list[VolunteerRow]:
    return sorted(volunteers, key=lambda v: volunteer_sort_key(v, year_order))


def partition_events(
    events: Sequence[EventRow],
    excluded: list[int] | None = None,
) -> dict[Section, list[EventRow]]:
    """
    Group events into report sections by category code.

    Every section is present in the result, possibly empty. Events with a
    code outside CATEGORY_TO_SECTION are left out of the report; their ids
    are appended to `excluded` when given. Each section is ordered by start
    date, keeping fetch order for events on the same day.
    """
    by_section: dict[Section, list[EventRow]] = {section: [] for section in SECTION_ORDER}
    for event in events:
        section = CATEGORY_TO_SECTION.get(event.category_code)
        if section is None:
            logger.info(
                "hours_ledger.event_excluded",
                event_id=event.id,
                category_code=event.category_code,
            )
            if excluded is not None:
                excluded.append(event.id)
            continue
        by_section[section].append(event)
    for section in SECTION_ORDER:
        by_section[section].sort(key=lambda e: e.start_date)
    return by_section


def is_attended(fact: ParticipationRow) -> bool:
    """Only confirmed or partial attendance with positive hours counts."""
    return fact.participation_status in ATTENDED_STATUSES and fact.hours_attended > 0


def check_references(snapshot: HoursLedgerSnapshot) -> None:
    """Every participation fact must point at a fetched event and volunteer."""
    event_ids = {e.id for e in snapshot.events}
    volunteer_ids = {v.id for v in snapshot.volunteers}
    for fact in snapshot.participation:
        if fact.event_id not in event_ids:
            raise DataIntegrityError("event", fact.event_id, "Participation fact")
        if fact.volunteer_id not in volunteer_ids:
            raise DataIntegrityError("volunteer", fact.volunteer_id, "Participation fact")


def build_hours_map(facts: Sequence[ParticipationRow]) -> dict[tuple[Hashable, Hashable], Decimal]:
    """(event_id, volunteer_id) -> attended hours, qualifying facts only."""
    return {
        (fact.event_id, fact.volunteer_id): fact.hours_attended
        for fact in facts
        if is_attended(fact)
    }


def count_by_gender(
    volunteers: Sequence[VolunteerRow], values: Sequence[Decimal]
) -> tuple[int, int, int]:
    """(Count, Male, Female) of volunteers with a non-zero value."""
    count = male = female = 0
    for volunteer, value in zip(volunteers, values):
        if value:
            count += 1
            if volunteer.gender == Gender.MALE:
                male += 1
            elif volunteer.gender == Gender.FEMALE:
                female += 1
    return count, male, female


def plan_summary_rows(
    sections: Sequence[SectionBlock], volunteers: Sequence[VolunteerRow]
) -> list[SummaryRow]:
    """Evaluate SUMMARY_PLAN: range rows copy a section, refs rows add earlier rows."""
    blocks = {block.section: block for block in sections}
    rows: list[SummaryRow] = []
    for spec in SUMMARY_PLAN:
        if spec.section is not None:
            block = blocks[spec.section]
            declared = block.declared_hours
            values = tuple(block.totals)
        else:
            parts = [rows[i] for i in spec.refs]
            declared = sum((p.declared_hours for p in parts), ZERO)
            values = tuple(
                sum((p.values[i] for p in parts), ZERO) for i in range(len(volunteers))
            )
        rows.append(
            SummaryRow(spec, declared, values, *count_by_gender(volunteers, values))
        )
    return rows


def build_hours_ledger(
    snapshot: HoursLedgerSnapshot,
    year_order: Sequence[str] = DEFAULT_YEAR_ORDER,
) -> HoursLedger:
    """
    Build the ledger from one snapshot.

    Raises DataIntegrityError when a participation fact references an event
    or volunteer missing from the snapshot; nothing is built in that case.
    """
    check_references(snapshot)
    hours = build_hours_map(snapshot.participation)
    volunteers = sort_volunteers(snapshot.volunteers, year_order)
    excluded: list[int] = []
    by_section = partition_events(snapshot.events, excluded)

    sections: list[SectionBlock] = []
    for section in SECTION_ORDER:
        block = SectionBlock(section=section, totals=[ZERO] * len(volunteers))
        for event in by_section[section]:
            values = []
            for i, volunteer in enumerate(volunteers):
                h = hours.get((event.id, volunteer.id), ZERO)
                if h:
                    block.totals[i] += h
                values.append(h)
            block.lines.append(EventLine(event, tuple(values), *count_by_gender(volunteers, values)))
            block.declared_hours += event.declared_hours
        sections.append(block)

    ledger = HoursLedger(
        volunteers=volunteers,
        sections=sections,
        summary_rows=plan_summary_rows(sections, volunteers),
        excluded_event_ids=excluded,
    )
    logger.info(
        "hours_ledger.built",
        volunteers=len(volunteers),
        events=sum(len(b.lines) for b in sections),
        excluded_events=len(excluded),
    )
    return ledger
