"""Volunteer model."""

from enum import StrEnum

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, BigIntPK


class Gender(StrEnum):
    """Gender codes as stored on volunteers."""

    MALE = "M"
    FEMALE = "F"


class VolunteerYear(StrEnum):
    """Year of study; drives column order in the hours ledger."""

    SE = "SE"
    TE = "TE"
    BE = "BE"


class Volunteer(Base):
    """NSS volunteer."""

    __tablename__ = "volunteers"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    gender: Mapped[str | None] = mapped_column(String(1), nullable=True)  # M | F | NULL
    year: Mapped[str] = mapped_column(String(10), nullable=False)  # SE | TE | BE
    branch: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nss_join_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
