#!/usr/bin/env python3
"""
Sync a NSS Hours ledger CSV into the database.

  - New volunteers      -> inserted
  - Existing volunteers -> skipped (matched by generated email)
  - Same name twice     -> second gets name.surname2@, third name.surname3@, ...
  - New events          -> inserted (matched by lower(name) + start date)
  - Fractional hours    -> event skipped (events carry whole declared hours)
  - New participation   -> inserted as present
  - Changed hours       -> updated

Safe to run multiple times, only the delta is written.

Usage:
    python scripts/sync_hours_csv.py "NSS Hours 25-26.csv" --dry-run
    python scripts/sync_hours_csv.py "NSS Hours 25-26.csv" --confirm --se-count 45
"""

import asyncio
import re
import sys
from datetime import datetime, time, timezone
from pathlib import Path

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database.session import async_session
from src.modules.events.models import (
    Event,
    EventCategory,
    EventParticipation,
    EventStatus,
    ParticipationStatus,
)
from src.modules.reports.csv_import import ParsedLedger, ParsedVolunteer, parse_hours_ledger_csv
from src.modules.volunteers.models import Volunteer, VolunteerYear

EMAIL_DOMAIN = "vit.edu.in"


def cap(s: str) -> str:
    return s[:1].upper() + s[1:].lower() if s else s


def make_email(first: str, last: str) -> str:
    f = re.sub(r"[^a-z]", "", first.lower())
    l = re.sub(r"[^a-z]", "", (last or "nss").lower())
    return f"{f}.{l}@{EMAIL_DOMAIN}"


def resolve_emails(volunteers: list[ParsedVolunteer]) -> list[str]:
    """One email per volunteer column; repeated names get a counter before the @."""
    seen: dict[str, int] = {}
    emails = []
    for v in volunteers:
        email = make_email(cap(v.first_name), cap(v.last_name))
        count = seen.get(email, 0)
        seen[email] = count + 1
        if count:
            local = email.split("@")[0]
            email = f"{local}{count + 1}"
        emails.append(email)
    return emails


def event_key(name: str, day) -> str:
    return f"{name.strip().lower()}|{day.isoformat()}"


async def sync(session: AsyncSession, parsed: ParsedLedger, se_count: int, dry_run: bool) -> None:
    categories = await session.execute(
        select(EventCategory.code, EventCategory.id).where(EventCategory.is_active.is_(True))
    )
    cat_by_code = dict(categories.all())
    if not cat_by_code:
        print("❌ No event categories found. Run migrations first.")
        sys.exit(1)

    # Volunteers
    vol_rows = await session.execute(select(Volunteer.email, Volunteer.id))
    vol_by_email = dict(vol_rows.all())
    col_to_id: dict[int, int] = {}
    vol_new = vol_skipped = 0
    for v, email in zip(parsed.volunteers, resolve_emails(parsed.volunteers)):
        first, last = cap(v.first_name), cap(v.last_name)
        if email in vol_by_email:
            col_to_id[v.column] = vol_by_email[email]
            vol_skipped += 1
            continue
        volunteer = Volunteer(
            first_name=first,
            last_name=last,
            email=email,
            gender=v.gender,
            year=VolunteerYear.SE.value if v.column < se_count else VolunteerYear.TE.value,
            nss_join_year=datetime.now().year,
            is_active=True,
        )
        session.add(volunteer)
        await session.flush()
        vol_by_email[email] = volunteer.id
        col_to_id[v.column] = volunteer.id
        vol_new += 1
    print(f"👥 Volunteers: {vol_new} new, {vol_skipped} existing")

    # Events
    evt_rows = await session.execute(
        select(func.lower(Event.event_name), Event.start_date, Event.id).where(Event.is_active.is_(True))
    )
    evt_by_key = {event_key(name, start.date()): eid for name, start, eid in evt_rows.all()}
    evt_new = evt_skipped = 0
    row_to_event: dict[int, int] = {}
    for e in parsed.events:
        key = event_key(e.event_name, e.start_date)
        if key in evt_by_key:
            row_to_event[e.row] = evt_by_key[key]
            evt_skipped += 1
            continue
        category_id = cat_by_code.get(e.category_code)
        if category_id is None:
            print(f"⚠️  Row {e.row + 1}: no category {e.category_code}, event skipped")
            continue
        if e.declared_hours != e.declared_hours.to_integral_value():
            print(
                f"⚠️  Row {e.row + 1}: fractional declared hours {e.declared_hours}, event skipped"
            )
            continue
        start = datetime.combine(e.start_date, time(9, 0), tzinfo=timezone.utc)
        event = Event(
            event_name=e.event_name,
            start_date=start,
            end_date=start,
            declared_hours=int(e.declared_hours),
            category_id=category_id,
            event_status=EventStatus.COMPLETED.value,
            is_active=True,
        )
        session.add(event)
        await session.flush()
        evt_by_key[key] = event.id
        row_to_event[e.row] = event.id
        evt_new += 1
    print(f"📅 Events: {evt_new} new, {evt_skipped} existing")

    # Participation
    part_rows = await session.execute(select(EventParticipation))
    existing = {(p.event_id, p.volunteer_id): p for p in part_rows.scalars().all()}
    part_new = part_updated = 0
    for e in parsed.events:
        event_id = row_to_event.get(e.row)
        if event_id is None:
            continue
        for column, hours in e.hours.items():
            volunteer_id = col_to_id[column]
            current = existing.get((event_id, volunteer_id))
            if current is None:
                session.add(
                    EventParticipation(
                        event_id=event_id,
                        volunteer_id=volunteer_id,
                        participation_status=ParticipationStatus.PRESENT.value,
                        hours_attended=hours,
                    )
                )
                part_new += 1
            elif current.hours_attended != hours:
                current.hours_attended = hours
                part_updated += 1
    print(f"⏱️  Participation: {part_new} new, {part_updated} updated")

    if dry_run:
        await session.rollback()
        print("\n✅ DRY-RUN complete, nothing written.")
        return
    await session.commit()
    print("\n✅ Sync committed.")


async def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Sync NSS Hours ledger CSV into the database")
    parser.add_argument("csv_path", type=Path, help="Ledger CSV file")
    parser.add_argument("--dry-run", action="store_true", help="Preview changes, rollback at end")
    parser.add_argument("--confirm", action="store_true", help="Apply changes (COMMIT)")
    parser.add_argument(
        "--se-count",
        type=int,
        default=45,
        help="Number of leading volunteer columns that are SE (rest are TE)",
    )
    args = parser.parse_args()

    if not args.dry_run and not args.confirm:
        print("❌ ERROR: specify --dry-run or --confirm")
        sys.exit(1)
    if args.dry_run and args.confirm:
        print("❌ ERROR: choose only one of --dry-run / --confirm")
        sys.exit(1)

    parsed = parse_hours_ledger_csv(args.csv_path.read_text(encoding="utf-8"))

    print("\n" + "=" * 70)
    print("SYNC NSS HOURS CSV")
    print("=" * 70)
    print(f"\n🌍 Environment: {settings.app_env}")
    print(
        f"🗄️  DB: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'unknown'}"
    )
    print(f"🔧 Mode: {'DRY-RUN' if args.dry_run else 'APPLY (COMMIT)'}")
    print(f"📄 Parsed: {len(parsed.volunteers)} volunteers, {len(parsed.events)} events\n")

    async with async_session() as session:
        await sync(session, parsed, se_count=args.se_count, dry_run=args.dry_run)


if __name__ == "__main__":
    asyncio.run(main())
