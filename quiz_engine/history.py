"""
Finished attempts and focused-practice summaries.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from quiz_engine.models import Grade, QuestionResult, SessionStatus, StudyMode, StyleMode
from quiz_engine.quota import utcnow
from quiz_engine.session_state import SessionState


@dataclass
class CompletedAttempt:
    edition: str
    mode: StyleMode
    study_mode: StudyMode
    status: SessionStatus
    correct_count: int
    incorrect_count: int
    total_asked: int
    results: List[QuestionResult] = field(default_factory=list)
    completed_at: datetime = field(default_factory=utcnow)
    id: Optional[str] = None

    @classmethod
    def from_state(cls, state: SessionState) -> "CompletedAttempt":
        if not state.is_finished:
            raise ValueError("Only finished sessions can be recorded")
        return cls(
            edition=state.edition,
            mode=state.mode,
            study_mode=state.study_mode,
            status=state.status,
            correct_count=state.correct_count,
            incorrect_count=state.incorrect_count,
            total_asked=state.total_asked,
            results=list(state.results),
        )

    @property
    def missed(self) -> List[QuestionResult]:
        return [r for r in self.results if r.grade is Grade.INCORRECT]


@dataclass(frozen=True)
class FocusedPracticeSummary:
    practiced: int
    now_correct: int
    still_incorrect: int
    improvement_rate: float  # percent of practiced questions now answered correctly

    @classmethod
    def from_state(cls, state: SessionState) -> "FocusedPracticeSummary":
        practiced = state.correct_count + state.incorrect_count
        return cls(
            practiced=practiced,
            now_correct=state.correct_count,
            still_incorrect=state.incorrect_count,
            improvement_rate=(state.correct_count / practiced) * 100 if practiced else 0.0,
        )


class AttemptHistory(ABC):
    @abstractmethod
    def append(self, account_id: int, attempt: CompletedAttempt) -> CompletedAttempt:
        raise NotImplementedError

    @abstractmethod
    def list(self, account_id: int, limit: int = 50) -> List[CompletedAttempt]:
        """Newest first."""
        raise NotImplementedError

    def best_score(self, account_id: int, edition: str) -> int:
        scores = [a.correct_count for a in self.list(account_id, limit=1000) if a.edition == edition]
        return max(scores, default=0)


class InMemoryAttemptHistory(AttemptHistory):
    def __init__(self):
        self._attempts: Dict[int, List[CompletedAttempt]] = {}

    def append(self, account_id: int, attempt: CompletedAttempt) -> CompletedAttempt:
        attempts = self._attempts.setdefault(account_id, [])
        if attempt.id is None:
            attempt.id = f"{account_id}-{len(attempts) + 1}"
        attempts.append(attempt)
        return attempt

    def list(self, account_id: int, limit: int = 50) -> List[CompletedAttempt]:
        attempts = sorted(self._attempts.get(account_id, []), key=lambda a: a.completed_at, reverse=True)
        return attempts[:limit]
