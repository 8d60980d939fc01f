"""
SQLAlchemy-backed implementations of the engine's storage contracts.

Counters and progress rows are changed with single UPDATE statements so that
concurrent requests for the same principal never overwrite each other from a
stale read.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quiz_api.models.models import CompletedAttemptRow, QuestionProgress, QuotaRecordRow
from quiz_api.models.session import QuizSessionSnapshot
from quiz_engine.errors import PersistenceWriteFailure
from quiz_engine.history import AttemptHistory, CompletedAttempt
from quiz_engine.models import Grade, QuestionResult, SessionStatus, StudyMode, StyleMode
from quiz_engine.persistence import SnapshotStore
from quiz_engine.progress import ProgressRecord, ProgressStore
from quiz_engine.quota import QuotaRecord, QuotaStore, Tier, utcnow

logger = logging.getLogger(__name__)


class SqlProgressStore(ProgressStore):
    def __init__(self, db: Session):
        self.db = db

    def _rows(self, account_id: int, edition: str):
        return self.db.query(QuestionProgress).filter(
            QuestionProgress.user_id == account_id,
            QuestionProgress.edition == edition,
        )

    def load(self, account_id: int, edition: str) -> ProgressRecord:
        record = ProgressRecord()
        for row in self._rows(account_id, edition).all():
            record.asked.add(int(row.question_index))
            if row.correct:
                record.correct.add(int(row.question_index))
        return record

    def _update(self, account_id: int, edition: str, index: int, correct: int) -> int:
        return (
            self._rows(account_id, edition)
            .filter(QuestionProgress.question_index == index)
            .update({QuestionProgress.correct: correct, QuestionProgress.updated_at: utcnow()}, synchronize_session=False)
        )

    def record_outcome(self, account_id: int, edition: str, index: int, grade: Grade) -> None:
        correct = 1 if grade is Grade.CORRECT else 0
        try:
            if self._update(account_id, edition, index, correct) == 0:
                self.db.add(
                    QuestionProgress(
                        user_id=account_id,
                        edition=edition,
                        question_index=index,
                        correct=correct,
                        updated_at=utcnow(),
                    )
                )
            self.db.commit()
        except IntegrityError:
            # Another request inserted the row first; apply ours on top of it.
            self.db.rollback()
            self._update(account_id, edition, index, correct)
            self.db.commit()

    def reset(self, account_id: int, edition: str) -> None:
        self._rows(account_id, edition).delete(synchronize_session=False)
        self.db.commit()


def _tier(value: Optional[str]) -> Tier:
    try:
        return Tier(value)
    except ValueError:
        logger.warning("unknown quota tier %r, treating as free", value)
        return Tier.FREE


class SqlQuotaStore(QuotaStore):
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def _query(self, owner_key: str):
        return self.db.query(QuotaRecordRow).filter(QuotaRecordRow.owner_key == owner_key)

    def _ensure(self, owner_key: str) -> QuotaRecordRow:
        row = self._query(owner_key).first()
        if row is not None:
            return row
        try:
            self.db.add(QuotaRecordRow(owner_key=owner_key, tier=Tier.FREE.value, answered_today=0, reset_at=self.clock()))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
        return self._query(owner_key).one()

    @staticmethod
    def _to_record(row: QuotaRecordRow) -> QuotaRecord:
        return QuotaRecord(
            tier=_tier(row.tier),
            answered_today=int(row.answered_today or 0),
            reset_at=row.reset_at,
            premium_expires_at=row.premium_expires_at,
        )

    def _reload(self, owner_key: str) -> QuotaRecord:
        row = self._query(owner_key).one()
        self.db.refresh(row)
        return self._to_record(row)

    def get(self, owner_key: str) -> QuotaRecord:
        return self._to_record(self._ensure(owner_key))

    def reset_if_elapsed(self, owner_key: str, now: datetime, window: timedelta) -> QuotaRecord:
        self._ensure(owner_key)
        reset = (
            self._query(owner_key)
            .filter(QuotaRecordRow.reset_at <= now - window)
            .update({QuotaRecordRow.answered_today: 0, QuotaRecordRow.reset_at: now}, synchronize_session=False)
        )
        self.db.commit()
        if reset:
            logger.info("quota window reset owner=%s", owner_key)
        return self._reload(owner_key)

    def increment(self, owner_key: str) -> QuotaRecord:
        self._ensure(owner_key)
        self._query(owner_key).update(
            {QuotaRecordRow.answered_today: QuotaRecordRow.answered_today + 1},
            synchronize_session=False,
        )
        self.db.commit()
        return self._reload(owner_key)


class SqlSnapshotStore(SnapshotStore):
    def __init__(self, db: Session):
        self.db = db

    def load(self, owner_key: str) -> Optional[Dict[str, Any]]:
        row = self.db.query(QuizSessionSnapshot).filter(QuizSessionSnapshot.owner_key == owner_key).first()
        if row is None or not isinstance(row.payload, dict):
            return None
        return dict(row.payload)

    def save(self, owner_key: str, payload: Dict[str, Any]) -> None:
        try:
            row = self.db.query(QuizSessionSnapshot).filter(QuizSessionSnapshot.owner_key == owner_key).first()
            if row is None:
                self.db.add(QuizSessionSnapshot(owner_key=owner_key, payload=dict(payload), updated_at=utcnow()))
            else:
                row.payload = dict(payload)
                row.updated_at = utcnow()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceWriteFailure(f"Could not save session for {owner_key}") from e

    def clear(self, owner_key: str) -> None:
        try:
            self.db.query(QuizSessionSnapshot).filter(QuizSessionSnapshot.owner_key == owner_key).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceWriteFailure(f"Could not clear session for {owner_key}") from e


def _attempt_from_row(row: CompletedAttemptRow) -> CompletedAttempt:
    return CompletedAttempt(
        id=str(row.id),
        edition=row.edition,
        mode=StyleMode(row.mode),
        study_mode=StudyMode(row.study_mode),
        status=SessionStatus(row.status),
        correct_count=int(row.correct_count),
        incorrect_count=int(row.incorrect_count),
        total_asked=int(row.total_asked),
        results=[QuestionResult.from_dict(r) for r in (row.results or [])],
        completed_at=row.completed_at,
    )


class SqlAttemptHistory(AttemptHistory):
    def __init__(self, db: Session):
        self.db = db

    def append(self, account_id: int, attempt: CompletedAttempt) -> CompletedAttempt:
        row = CompletedAttemptRow(
            user_id=account_id,
            edition=attempt.edition,
            mode=attempt.mode.value,
            study_mode=attempt.study_mode.value,
            status=attempt.status.value,
            correct_count=attempt.correct_count,
            incorrect_count=attempt.incorrect_count,
            total_asked=attempt.total_asked,
            results=[r.to_dict() for r in attempt.results],
            completed_at=attempt.completed_at,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        attempt.id = str(row.id)
        return attempt

    def list(self, account_id: int, limit: int = 50) -> List[CompletedAttempt]:
        rows = (
            self.db.query(CompletedAttemptRow)
            .filter(CompletedAttemptRow.user_id == account_id)
            .order_by(CompletedAttemptRow.completed_at.desc(), CompletedAttemptRow.id.desc())
            .limit(limit)
            .all()
        )
        return [_attempt_from_row(r) for r in rows]

    def best_score(self, account_id: int, edition: str) -> int:
        best = (
            self.db.query(func.max(CompletedAttemptRow.correct_count))
            .filter(CompletedAttemptRow.user_id == account_id, CompletedAttemptRow.edition == edition)
            .scalar()
        )
        return int(best or 0)
