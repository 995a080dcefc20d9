"""Booking model definitions."""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from scheduler_api.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base):
    """A reservation of one event type. Times are stored as naive UTC."""
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_bookings_confirmed_start",
            "event_type_id",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
        Index("idx_bookings_time_range", "start_time", "end_time"),
    )

    id = Column(Integer, primary_key=True)
    event_type_id = Column(Integer, ForeignKey("event_types.id", ondelete="CASCADE"), index=True, nullable=False)
    invitee_name = Column(String(255), nullable=False)
    invitee_email = Column(String(255), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
