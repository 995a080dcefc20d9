"""Event type model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func
from scheduler_api.database import Base


class EventType(Base):
    """A bookable activity with a fixed duration, owned by one user."""
    __tablename__ = "event_types"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_event_types_positive_duration"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    color = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
