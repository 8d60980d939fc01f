"""
Per-account, per-edition question mastery.

A ProgressRecord only stores which questions were asked and which were last
answered correctly. The incorrect set is always derived.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from quiz_engine.models import Grade


@dataclass
class ProgressRecord:
    asked: Set[int] = field(default_factory=set)
    correct: Set[int] = field(default_factory=set)

    @property
    def incorrect(self) -> Set[int]:
        return self.asked - self.correct

    def apply(self, index: int, grade: Grade) -> None:
        self.asked.add(index)
        if grade is Grade.CORRECT:
            self.correct.add(index)
        else:
            # A later wrong answer revokes earlier mastery.
            self.correct.discard(index)


@dataclass(frozen=True)
class ProgressStats:
    edition: str
    total_asked: int
    total_correct: int
    total_incorrect: int
    incorrect_indices: List[int]
    percentage_correct: float
    total_questions: int

    @property
    def focused_available(self) -> bool:
        return self.total_incorrect > 0

    @classmethod
    def from_record(cls, edition: str, record: ProgressRecord, total_questions: int) -> "ProgressStats":
        asked = len(record.asked)
        correct = len(record.correct & record.asked)
        incorrect = sorted(record.incorrect)
        return cls(
            edition=edition,
            total_asked=asked,
            total_correct=correct,
            total_incorrect=len(incorrect),
            incorrect_indices=incorrect,
            percentage_correct=(correct / asked) * 100 if asked else 0.0,
            total_questions=total_questions,
        )


class ProgressStore(ABC):
    """
    Defines the contract for progress storage.

    record_outcome must be an atomic read-modify-write in the backing store so
    two devices answering for the same account cannot lose an update.
    """

    @abstractmethod
    def load(self, account_id: int, edition: str) -> ProgressRecord:
        raise NotImplementedError

    @abstractmethod
    def record_outcome(self, account_id: int, edition: str, index: int, grade: Grade) -> None:
        raise NotImplementedError

    @abstractmethod
    def reset(self, account_id: int, edition: str) -> None:
        raise NotImplementedError

    def stats(self, account_id: int, edition: str, total_questions: int) -> ProgressStats:
        return ProgressStats.from_record(edition, self.load(account_id, edition), total_questions)


class InMemoryProgressStore(ProgressStore):
    def __init__(self):
        self._records: Dict[Tuple[int, str], ProgressRecord] = {}

    def load(self, account_id: int, edition: str) -> ProgressRecord:
        record = self._records.get((account_id, edition))
        if record is None:
            return ProgressRecord()
        return ProgressRecord(asked=set(record.asked), correct=set(record.correct))

    def record_outcome(self, account_id: int, edition: str, index: int, grade: Grade) -> None:
        record = self._records.setdefault((account_id, edition), ProgressRecord())
        record.apply(index, grade)

    def reset(self, account_id: int, edition: str) -> None:
        self._records.pop((account_id, edition), None)
