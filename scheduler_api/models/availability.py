"""Availability model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Time, func
from scheduler_api.database import Base


class AvailabilityWindow(Base):
    """A recurring weekly interval during which the owner accepts bookings.

    ``day_of_week`` counts from Sunday (0) to Saturday (6). Start and end are
    wall-clock times in ``timezone``.
    """
    __tablename__ = "availability_windows"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
    )

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    timezone = Column(String(50), nullable=False, default="UTC")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
