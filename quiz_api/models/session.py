"""
Saved in-progress quiz sessions, one row per principal.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String

from quiz_api.config import Base


class QuizSessionSnapshot(Base):
    """
    Latest snapshot of a principal's quiz session.

    payload holds the engine snapshot (edition, modes, status, canonical
    index sequence, cursor, counts, per-question results, retry flag).
    """
    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, index=True)
    owner_key = Column(String, unique=True, index=True, nullable=False)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
