from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship

from quiz_api.config import Base


class Account(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    preferences = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuestionProgress(Base):
    """One row per (account, edition, question). incorrect is derived as asked and not correct."""
    __tablename__ = "question_progress"
    __table_args__ = (UniqueConstraint("user_id", "edition", "question_index", name="uq_progress_question"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    edition = Column(String, index=True, nullable=False)
    question_index = Column(Integer, nullable=False)
    correct = Column(Integer, default=0, nullable=False)  # 0|1, last terminal grade
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("Account", backref="question_progress", foreign_keys=[user_id])


class QuotaRecordRow(Base):
    __tablename__ = "quota_records"
    id = Column(Integer, primary_key=True, index=True)
    owner_key = Column(String, unique=True, index=True, nullable=False)  # account:<id> | guest:<id>
    tier = Column(String, default="free", nullable=False)
    answered_today = Column(Integer, default=0, nullable=False)
    reset_at = Column(DateTime, nullable=False)
    premium_expires_at = Column(DateTime, nullable=True)


class CompletedAttemptRow(Base):
    __tablename__ = "completed_attempts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    edition = Column(String, index=True, nullable=False)
    mode = Column(String, nullable=False)
    study_mode = Column(String, nullable=False)
    status = Column(String, nullable=False)
    correct_count = Column(Integer, nullable=False)
    incorrect_count = Column(Integer, nullable=False)
    total_asked = Column(Integer, nullable=False)
    results = Column(JSON, nullable=False)  # list of QuestionResult dicts
    completed_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    user = relationship("Account", backref="attempts", foreign_keys=[user_id])
