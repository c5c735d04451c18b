"""Add volunteers, event categories, events and participation tables

Revision ID: 001_volunteers_and_events
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_volunteers_and_events"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "volunteers",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("gender", sa.String(1), nullable=True),
        sa.Column("year", sa.String(10), nullable=False),
        sa.Column("branch", sa.String(20), nullable=True),
        sa.Column("nss_join_year", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("gender IS NULL OR gender IN ('M', 'F')", name="ck_volunteers_gender"),
    )

    op.create_table(
        "event_categories",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("category_name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color_hex", sa.String(7), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    # Seed categories used by the hours ledger
    op.execute(
        """
        INSERT INTO event_categories (code, category_name, is_active) VALUES
        ('area-based-1', 'Area Based - 1', true),
        ('area-based-2', 'Area Based - 2', true),
        ('university-based', 'University Based', true),
        ('college-based', 'College Based', true)
        """
    )

    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("event_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("declared_hours", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.BigInteger(), nullable=False),
        sa.Column("event_status", sa.String(30), nullable=False, server_default="planned"),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["category_id"], ["event_categories.id"]),
        sa.CheckConstraint("end_date >= start_date", name="ck_events_dates"),
        sa.CheckConstraint(
            "declared_hours >= 1 AND declared_hours <= 240", name="ck_events_declared_hours"
        ),
    )
    op.create_index("ix_events_category_id", "events", ["category_id"])
    op.create_index("ix_events_start_date", "events", ["start_date"])

    op.create_table(
        "event_participation",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.BigInteger(), nullable=False),
        sa.Column("volunteer_id", sa.BigInteger(), nullable=False),
        sa.Column(
            "participation_status", sa.String(30), nullable=False, server_default="registered"
        ),
        sa.Column("hours_attended", sa.Numeric(5, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["volunteer_id"], ["volunteers.id"]),
        sa.UniqueConstraint("event_id", "volunteer_id", name="uq_event_participation"),
    )
    op.create_index("ix_event_participation_event_id", "event_participation", ["event_id"])
    op.create_index("ix_event_participation_volunteer_id", "event_participation", ["volunteer_id"])


def downgrade() -> None:
    op.drop_index("ix_event_participation_volunteer_id", table_name="event_participation")
    op.drop_index("ix_event_participation_event_id", table_name="event_participation")
    op.drop_table("event_participation")
    op.drop_index("ix_events_start_date", table_name="events")
    op.drop_index("ix_events_category_id", table_name="events")
    op.drop_table("events")
    op.drop_table("event_categories")
    op.drop_table("volunteers")
