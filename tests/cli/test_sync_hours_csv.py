"""Tests for the ledger CSV sync script."""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scripts.sync_hours_csv import make_email, resolve_emails, sync
from src.modules.events.models import Event, EventParticipation
from src.modules.reports.csv_import import ParsedVolunteer, parse_hours_ledger_csv
from src.modules.volunteers.models import Volunteer

LEDGER = "\n".join([
    ",,,,Amit,Amit,Sara,Count,Male,Female",
    ",Date,Event Name,Hours,Shah,Shah,Khan",
    ",,,,Male,Male,Female",
    ",,Area Based - 1,",
    ",1/10/2026,Beach Cleanup,4,4,2,,2,2,0",
    ",1/17/2026,Tree Plantation,3,,3,3,2,1,1",
    ",,TOTAL,7,4,5,3",
])


async def _count(session: AsyncSession, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestResolveEmails:
    """Tests for resolve_emails."""

    def test_unique_names(self):
        vols = [ParsedVolunteer(0, "Amit", "Shah", "M"), ParsedVolunteer(1, "Sara", "Khan", "F")]
        assert resolve_emails(vols) == ["amit.shah@vit.edu.in", "sara.khan@vit.edu.in"]

    def test_repeated_names_get_counter(self):
        vols = [ParsedVolunteer(i, "Amit", "Shah", "M") for i in range(3)]
        assert resolve_emails(vols) == [
            "amit.shah@vit.edu.in",
            "amit.shah2@vit.edu.in",
            "amit.shah3@vit.edu.in",
        ]

    def test_names_differing_only_in_case_collide(self):
        vols = [ParsedVolunteer(0, "AMIT", "shah", None), ParsedVolunteer(1, "amit", "Shah", None)]
        assert resolve_emails(vols) == ["amit.shah@vit.edu.in", "amit.shah2@vit.edu.in"]

    def test_missing_last_name(self):
        assert make_email("Asha", "") == "asha.nss@vit.edu.in"


class TestSync:
    """Tests for sync against the database."""

    async def test_same_name_columns_become_two_volunteers(self, db_session: AsyncSession, categories):
        await sync(db_session, parse_hours_ledger_csv(LEDGER), se_count=45, dry_run=False)

        volunteers = (await db_session.execute(select(Volunteer).order_by(Volunteer.id))).scalars().all()
        assert [v.email for v in volunteers] == [
            "amit.shah@vit.edu.in",
            "amit.shah2@vit.edu.in",
            "sara.khan@vit.edu.in",
        ]
        amit, amit2, sara = (v.id for v in volunteers)

        rows = await db_session.execute(
            select(EventParticipation.volunteer_id, EventParticipation.hours_attended)
            .join(Event, Event.id == EventParticipation.event_id)
            .where(Event.event_name == "Beach Cleanup")
        )
        assert {vid: Decimal(h) for vid, h in rows.all()} == {amit: Decimal("4"), amit2: Decimal("2")}
        assert await _count(db_session, EventParticipation) == 4

    async def test_rerun_writes_nothing_new(self, db_session: AsyncSession, categories, capsys):
        parsed = parse_hours_ledger_csv(LEDGER)
        await sync(db_session, parsed, se_count=45, dry_run=False)
        capsys.readouterr()

        await sync(db_session, parsed, se_count=45, dry_run=False)
        out = capsys.readouterr().out
        assert "Volunteers: 0 new, 3 existing" in out
        assert "Events: 0 new, 2 existing" in out
        assert "Participation: 0 new, 0 updated" in out
        assert await _count(db_session, Volunteer) == 3
        assert await _count(db_session, EventParticipation) == 4

    async def test_changed_hours_are_updated(self, db_session: AsyncSession, categories, capsys):
        await sync(db_session, parse_hours_ledger_csv(LEDGER), se_count=45, dry_run=False)
        changed = LEDGER.replace(",1/10/2026,Beach Cleanup,4,4,2,", ",1/10/2026,Beach Cleanup,4,4,3.5,")
        await sync(db_session, parse_hours_ledger_csv(changed), se_count=45, dry_run=False)
        assert "Participation: 0 new, 1 updated" in capsys.readouterr().out

    async def test_dry_run_writes_nothing(self, db_session: AsyncSession, categories):
        await db_session.commit()
        await sync(db_session, parse_hours_ledger_csv(LEDGER), se_count=45, dry_run=True)
        assert await _count(db_session, Volunteer) == 0
        assert await _count(db_session, Event) == 0
        assert await _count(db_session, EventParticipation) == 0

    async def test_se_count_splits_years(self, db_session: AsyncSession, categories):
        await sync(db_session, parse_hours_ledger_csv(LEDGER), se_count=2, dry_run=False)
        years = (await db_session.execute(select(Volunteer.year).order_by(Volunteer.id))).scalars().all()
        assert years == ["SE", "SE", "TE"]

    async def test_fractional_declared_hours_skip_event(
        self, db_session: AsyncSession, categories, capsys
    ):
        ledger = LEDGER.replace(",1/17/2026,Tree Plantation,3,", ",1/17/2026,Tree Plantation,1.5,")
        await sync(db_session, parse_hours_ledger_csv(ledger), se_count=45, dry_run=False)

        names = (await db_session.execute(select(Event.event_name))).scalars().all()
        assert names == ["Beach Cleanup"]
        assert await _count(db_session, EventParticipation) == 2
        out = capsys.readouterr().out
        assert "Row 6: fractional declared hours 1.5, event skipped" in out
