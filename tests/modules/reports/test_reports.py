"""Tests for Reports API: GET hours-ledger, GET hours-ledger/export."""

import csv
from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO, StringIO

from httpx import AsyncClient
from openpyxl import load_workbook
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.events.models import (
    Event,
    EventCategory,
    EventParticipation,
    EventStatus,
    ParticipationStatus,
)
from src.modules.reports.excel_export import XLSX_MEDIA_TYPE
from src.modules.reports.schemas import HoursLedgerSnapshot, ParticipationRow
from src.modules.reports.service import HoursLedgerService
from src.modules.volunteers.models import Gender, Volunteer, VolunteerYear


def _day(month: int, day: int) -> datetime:
    return datetime(2026, month, day, 9, 0, tzinfo=timezone.utc)


async def _seed(db_session: AsyncSession, cats: dict[str, EventCategory]) -> dict[str, int]:
    """
    Seed a small ledger:
    - Ravi (SE, M) 4h and Sara (SE, F) 2h at Beach Cleanup (Area Based - 1)
    - Tara (TE, F) absent at Beach Cleanup, 6h at Blood Donation (University Based)
    - inactive volunteer, inactive event and a workshop event that must not count
    """

    def volunteer(first, last, gender, year, active=True):
        v = Volunteer(
            first_name=first,
            last_name=last,
            email=f"{first.lower()}.{last.lower()}@test.com",
            gender=gender,
            year=year,
            is_active=active,
        )
        db_session.add(v)
        return v

    tara = volunteer("Tara", "Joshi", Gender.FEMALE.value, VolunteerYear.TE.value)
    sara = volunteer("Sara", "Khan", Gender.FEMALE.value, VolunteerYear.SE.value)
    ravi = volunteer("Ravi", "Patil", Gender.MALE.value, VolunteerYear.SE.value)
    omar = volunteer("Omar", "Shaikh", Gender.MALE.value, VolunteerYear.SE.value, active=False)

    def event(name, code, start, hours, active=True):
        e = Event(
            event_name=name,
            start_date=start,
            end_date=start,
            declared_hours=hours,
            category_id=cats[code].id,
            event_status=EventStatus.COMPLETED.value,
            is_active=active,
        )
        db_session.add(e)
        return e

    beach = event("Beach Cleanup", "area-based-1", _day(1, 10), 4)
    blood = event("Blood Donation", "university-based", _day(2, 1), 6)
    cancelled = event("Tree Plantation", "college-based", _day(2, 5), 3, active=False)
    workshop = event("Soft Skills", "workshop", _day(2, 8), 2)
    await db_session.flush()

    for e, v, hours, status in [
        (beach, ravi, "4", ParticipationStatus.PRESENT),
        (beach, sara, "2", ParticipationStatus.PARTIALLY_PRESENT),
        (beach, tara, "4", ParticipationStatus.ABSENT),
        (blood, tara, "6", ParticipationStatus.PRESENT),
        (beach, omar, "4", ParticipationStatus.PRESENT),
        (cancelled, ravi, "3", ParticipationStatus.PRESENT),
        (workshop, sara, "2", ParticipationStatus.PRESENT),
    ]:
        db_session.add(
            EventParticipation(
                event_id=e.id,
                volunteer_id=v.id,
                hours_attended=Decimal(hours),
                participation_status=status.value,
            )
        )
    await db_session.commit()
    return {"ravi": ravi.id, "sara": sara.id, "tara": tara.id, "omar": omar.id}


def _decimals(values) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


class TestHoursLedger:
    """Tests for GET /reports/hours-ledger."""

    async def test_empty_database(self, client: AsyncClient):
        response = await client.get("/api/v1/reports/hours-ledger")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        d = data["data"]
        assert d["volunteers"] == []
        assert [s["section"] for s in d["sections"]] == [
            "Area Based - 1",
            "Area Based - 2",
            "University Based",
            "College Based",
        ]
        assert len(d["summary_rows"]) == 6
        assert d["excluded_event_count"] == 0

    async def test_ledger_numbers(self, client: AsyncClient, db_session: AsyncSession, categories):
        ids = await _seed(db_session, categories)
        response = await client.get("/api/v1/reports/hours-ledger")
        assert response.status_code == 200
        d = response.json()["data"]

        assert [v["id"] for v in d["volunteers"]] == [ids["ravi"], ids["sara"], ids["tara"]]
        assert _decimals(v["total_hours"] for v in d["volunteers"]) == _decimals([4, 2, 6])

        sections = {s["section"]: s for s in d["sections"]}
        assert sections["Area Based - 1"]["event_count"] == 1
        assert _decimals(sections["Area Based - 1"]["totals"]) == _decimals([4, 2, 0])
        assert sections["University Based"]["event_count"] == 1
        assert sections["College Based"]["event_count"] == 0
        assert d["excluded_event_count"] == 1

        grand = d["summary_rows"][-1]
        assert grand["label"] == "Total Hours (120)"
        assert Decimal(str(grand["declared_hours"])) == Decimal("10")
        assert (grand["count"], grand["male"], grand["female"]) == (3, 1, 2)

    async def test_integrity_violation_returns_500(self, client: AsyncClient, monkeypatch):
        async def broken_snapshot(self):
            return HoursLedgerSnapshot(
                volunteers=[],
                events=[],
                participation=[
                    ParticipationRow(
                        event_id=7,
                        volunteer_id=1,
                        hours_attended=Decimal("1"),
                        participation_status="present",
                    )
                ],
            )

        monkeypatch.setattr(HoursLedgerService, "fetch_snapshot", broken_snapshot)
        response = await client.get("/api/v1/reports/hours-ledger/export?format=csv")
        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert "unknown event id=7" in data["message"]


class TestHoursLedgerExport:
    """Tests for GET /reports/hours-ledger/export."""

    async def test_csv_export(self, client: AsyncClient, db_session: AsyncSession, categories):
        await _seed(db_session, categories)
        response = await client.get("/api/v1/reports/hours-ledger/export?format=csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="nss_hours_')
        assert disposition.endswith('.csv"')

        rows = list(csv.reader(StringIO(response.content.decode("utf-8"))))
        assert rows[0] == ["", "", "", "", "Ravi", "Sara", "Tara", "Count", "Male", "Female"]
        assert rows[2] == ["", "", "", "", "Male", "Female", "Female"]
        assert ["", "1/10/2026", "Beach Cleanup", "4", "4", "2", "", "2", "1", "1"] in rows
        assert ["", "2/1/2026", "Blood Donation", "6", "", "", "6", "1", "0", "1"] in rows
        assert ["0", "Total Hours (120)", "", "10", "4", "2", "6", "3", "1", "2"] == rows[-1]
        assert not any("Tree Plantation" in r or "Soft Skills" in r for r in rows)

    async def test_csv_is_default_format(self, client: AsyncClient):
        response = await client.get("/api/v1/reports/hours-ledger/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")

    async def test_xlsx_export(self, client: AsyncClient, db_session: AsyncSession, categories):
        await _seed(db_session, categories)
        response = await client.get("/api/v1/reports/hours-ledger/export?format=XLSX")
        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert response.headers["content-disposition"].endswith('.xlsx"')

        ws = load_workbook(BytesIO(response.content), data_only=True).active
        assert ws.title == "NSS Hours"
        assert [ws.cell(1, c).value for c in range(5, 11)] == [
            "Ravi", "Sara", "Tara", "Count", "Male", "Female",
        ]
        assert ws["C5"].value == "Beach Cleanup"
        assert ws.freeze_panes == "E4"
        last = ws.max_row
        assert ws.cell(last, 2).value == "Total Hours (120)"
        assert [ws.cell(last, c).value for c in range(4, 11)] == [10, 4, 2, 6, 3, 1, 2]

    async def test_invalid_format(self, client: AsyncClient):
        response = await client.get("/api/v1/reports/hours-ledger/export?format=pdf")
        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["errors"][0]["field"] == "format"


class TestHoursLedgerService:
    """Tests for HoursLedgerService against the database."""

    async def test_snapshot_filters_inactive_records(self, db_session: AsyncSession, categories):
        ids = await _seed(db_session, categories)
        snapshot = await HoursLedgerService(db_session).fetch_snapshot()
        assert ids["omar"] not in {v.id for v in snapshot.volunteers}
        assert {e.event_name for e in snapshot.events} == {
            "Beach Cleanup",
            "Blood Donation",
            "Soft Skills",
        }
        assert all(f.volunteer_id != ids["omar"] for f in snapshot.participation)
        # Non-qualifying facts are kept; the ledger filters them
        assert len(snapshot.participation) == 5

    async def test_custom_year_order(self, db_session: AsyncSession, categories):
        ids = await _seed(db_session, categories)
        ledger = await HoursLedgerService(db_session, year_order=["TE", "SE"]).build_ledger()
        assert [v.id for v in ledger.volunteers] == [ids["tara"], ids["ravi"], ids["sara"]]
