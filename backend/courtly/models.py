from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import Enum, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, DateTime, Integer, String


SLOT_UNIQUE_CONSTRAINT = "uq_reservations_date_slot_court"


class Base(DeclarativeBase):
    pass


class ReservationStatus(StrEnum):
    PAID = "paid"


class CourtRecord(Base):
    __tablename__ = "courts"
    __table_args__ = (Index("idx_courts_position", "position"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    price_per_hour: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        # Write-time guard against double booking; the availability check alone is not atomic.
        UniqueConstraint("date", "timeslot_id", "court_id", name=SLOT_UNIQUE_CONSTRAINT),
        Index("idx_res_date_slot", "date", "timeslot_id"),
        Index("idx_res_payment_ref", "payment_ref"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    timeslot_id: Mapped[str] = mapped_column(String(16), nullable=False)
    court_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(
            ReservationStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=ReservationStatus.PAID,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    payment_ref: Mapped[str] = mapped_column(String(255), nullable=False)
