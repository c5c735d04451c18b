"""Schemas for the hours ledger report."""

from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from pydantic import field_validator

from src.core.config import settings
from src.shared.schemas.base import BaseSchema


# --- Snapshot rows (input boundary of the export engine) ---


class VolunteerRow(BaseSchema):
    """Active volunteer as read for one export."""

    id: int
    first_name: str
    last_name: str = ""
    gender: str | None = None  # M | F | anything else = unknown
    year: str = ""


class EventRow(BaseSchema):
    """Active event with the code of its category."""

    id: int
    event_name: str
    start_date: date
    declared_hours: Decimal
    category_code: str

    @field_validator("start_date", mode="before")
    @classmethod
    def drop_time(cls, v):
        """
        Events are stored with a timestamp; the ledger shows the day in the
        report timezone. Naive timestamps are taken as UTC.
        """
        if isinstance(v, datetime):
            if v.tzinfo is None:
                v = v.replace(tzinfo=timezone.utc)
            return v.astimezone(ZoneInfo(settings.report_timezone)).date()
        return v


class ParticipationRow(BaseSchema):
    """Hours one volunteer attended at one event."""

    event_id: int
    volunteer_id: int
    hours_attended: Decimal
    participation_status: str


class HoursLedgerSnapshot(BaseSchema):
    """Point-in-time read of everything the ledger needs."""

    volunteers: list[VolunteerRow]
    events: list[EventRow]
    participation: list[ParticipationRow]


# --- API response ---


class LedgerVolunteer(BaseSchema):
    """Volunteer column of the ledger, in column order."""

    id: int
    first_name: str
    last_name: str
    gender: str | None
    total_hours: Decimal


class LedgerSection(BaseSchema):
    """Section block totals."""

    section: str
    event_count: int
    declared_hours: Decimal
    totals: list[Decimal]  # per volunteer, same order as volunteers


class LedgerSummaryRow(BaseSchema):
    """One of the six rollup rows."""

    label: str
    declared_hours: Decimal
    values: list[Decimal]
    count: int
    male: int
    female: int


class HoursLedgerResponse(BaseSchema):
    """Hours ledger overview (same numbers as the CSV/XLSX exports)."""

    volunteers: list[LedgerVolunteer]
    sections: list[LedgerSection]
    summary_rows: list[LedgerSummaryRow]
    excluded_event_count: int
