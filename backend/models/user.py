from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String

from core.database import Base, GUID
from core.timeutils import utcnow


class User(Base):
    """Profile, preferences and cached practice statistics"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=uuid4)
    name = Column(String(50), nullable=False, default="Practitioner")
    email = Column(String(255))

    # Preferences
    timezone = Column(String(64), nullable=False, default="UTC")
    dark_mode = Column(Boolean, nullable=False, default=False)
    notifications = Column(Boolean, nullable=False, default=True)
    platform_usernames = Column(JSON, default=dict)  # platform -> handle

    # Statistics
    total_problems_solved = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    average_solve_time = Column(Float, nullable=False, default=0.0)
    total_revision_count = Column(Integer, nullable=False, default=0)

    last_active_date = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
