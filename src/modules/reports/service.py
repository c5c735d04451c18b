"""Service for the hours ledger report."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.modules.events.models import Event, EventCategory, EventParticipation
from src.modules.reports.csv_export import build_hours_ledger_csv
from src.modules.reports.excel_export import build_hours_ledger_xlsx
from src.modules.reports.ledger import HoursLedger, build_hours_ledger
from src.modules.reports.schemas import (
    EventRow,
    HoursLedgerSnapshot,
    ParticipationRow,
    VolunteerRow,
)
from src.modules.volunteers.models import Volunteer


class HoursLedgerService:
    """Read the active snapshot and build hours ledger exports."""

    def __init__(self, db: AsyncSession, year_order: Sequence[str] | None = None):
        self.db = db
        self.year_order = list(year_order or settings.report_year_order)

    async def fetch_snapshot(self) -> HoursLedgerSnapshot:
        """
        Active volunteers, active events of active categories, and every
        participation fact between them. Attendance filtering happens in the
        ledger so that integrity checks see all facts.
        """
        vol_result = await self.db.execute(
            select(
                Volunteer.id,
                Volunteer.first_name,
                Volunteer.last_name,
                Volunteer.gender,
                Volunteer.year,
            )
            .where(Volunteer.is_active.is_(True))
            .order_by(Volunteer.id)
        )
        volunteers = [VolunteerRow.model_validate(dict(row._mapping)) for row in vol_result]

        evt_result = await self.db.execute(
            select(
                Event.id,
                Event.event_name,
                Event.start_date,
                Event.declared_hours,
                EventCategory.code.label("category_code"),
            )
            .join(EventCategory, EventCategory.id == Event.category_id)
            .where(Event.is_active.is_(True), EventCategory.is_active.is_(True))
            .order_by(EventCategory.code, Event.start_date, Event.id)
        )
        events = [EventRow.model_validate(dict(row._mapping)) for row in evt_result]

        part_result = await self.db.execute(
            select(
                EventParticipation.event_id,
                EventParticipation.volunteer_id,
                EventParticipation.hours_attended,
                EventParticipation.participation_status,
            )
            .join(Event, Event.id == EventParticipation.event_id)
            .join(EventCategory, EventCategory.id == Event.category_id)
            .join(Volunteer, Volunteer.id == EventParticipation.volunteer_id)
            .where(
                Event.is_active.is_(True),
                EventCategory.is_active.is_(True),
                Volunteer.is_active.is_(True),
            )
            .order_by(EventParticipation.id)
        )
        participation = [ParticipationRow.model_validate(dict(row._mapping)) for row in part_result]

        return HoursLedgerSnapshot(
            volunteers=volunteers,
            events=events,
            participation=participation,
        )

    async def build_ledger(self) -> HoursLedger:
        snapshot = await self.fetch_snapshot()
        return build_hours_ledger(snapshot, year_order=self.year_order)

    async def export_csv(self) -> str:
        return build_hours_ledger_csv(await self.build_ledger())

    async def export_xlsx(self) -> bytes:
        return build_hours_ledger_xlsx(await self.build_ledger(), title=settings.report_sheet_title)

    @staticmethod
    def to_response(ledger: HoursLedger) -> dict:
        """Ledger numbers as a plain dict for HoursLedgerResponse."""
        volunteers = []
        for i, v in enumerate(ledger.volunteers):
            volunteers.append({
                "id": v.id,
                "first_name": v.first_name,
                "last_name": v.last_name,
                "gender": v.gender,
                "total_hours": ledger.summary_rows[-1].values[i],
            })
        return {
            "volunteers": volunteers,
            "sections": [
                {
                    "section": block.section.value,
                    "event_count": len(block.lines),
                    "declared_hours": block.declared_hours,
                    "totals": list(block.totals),
                }
                for block in ledger.sections
            ],
            "summary_rows": [
                {
                    "label": s.label,
                    "declared_hours": s.declared_hours,
                    "values": list(s.values),
                    "count": s.count,
                    "male": s.male,
                    "female": s.female,
                }
                for s in ledger.summary_rows
            ],
            "excluded_event_count": len(ledger.excluded_event_ids),
        }
