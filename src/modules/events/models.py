"""Event, category and participation models."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BigIntPK


class EventStatus(StrEnum):
    """Event lifecycle status."""

    PLANNED = "planned"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipationStatus(StrEnum):
    """Attendance outcome for one volunteer at one event."""

    REGISTERED = "registered"
    PRESENT = "present"
    ABSENT = "absent"
    PARTIALLY_PRESENT = "partially_present"
    EXCUSED = "excused"


# Statuses that count as actual attendance in hour reports
ATTENDED_STATUSES = (ParticipationStatus.PRESENT.value, ParticipationStatus.PARTIALLY_PRESENT.value)


class EventCategory(Base):
    """Event category, e.g. area-based-1, university-based."""

    __tablename__ = "event_categories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    category_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color_hex: Mapped[str | None] = mapped_column(String(7), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    events: Mapped[list["Event"]] = relationship("Event", back_populates="category")


class Event(Base):
    """NSS event; declared_hours is the nominal credit for attending."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    declared_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("event_categories.id"), nullable=False, index=True
    )
    event_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=EventStatus.PLANNED.value
    )
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    category: Mapped["EventCategory"] = relationship("EventCategory", back_populates="events")


class EventParticipation(Base):
    """Attendance fact: hours one volunteer attended at one event."""

    __tablename__ = "event_participation"
    __table_args__ = (UniqueConstraint("event_id", "volunteer_id", name="uq_event_participation"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("events.id"), nullable=False, index=True
    )
    volunteer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("volunteers.id"), nullable=False, index=True
    )
    participation_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ParticipationStatus.REGISTERED.value
    )
    hours_attended: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
