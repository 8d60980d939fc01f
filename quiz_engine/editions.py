"""
Edition policy and canonical question banks.

Thresholds are fixed policy per edition, not derived from the bank size.
Because fail < total - pass + 1, an outcome can be decided before every
question in the session has been shown.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Sequence, Tuple

from quiz_engine.errors import UnknownEdition
from quiz_engine.models import Question

FOCUSED_MAX_QUESTIONS = 20


@dataclass(frozen=True)
class Edition:
    id: str
    label: str
    total: int  # questions per session
    pass_threshold: int
    fail_threshold: int


EDITIONS: Dict[str, Edition] = {
    "A": Edition(id="A", label="2008 civics test", total=10, pass_threshold=6, fail_threshold=5),
    "B": Edition(id="B", label="2025 civics test", total=20, pass_threshold=12, fail_threshold=9),
}


def get_edition(edition_id: str) -> Edition:
    try:
        return EDITIONS[str(edition_id).upper()]
    except KeyError:
        raise UnknownEdition(edition_id) from None


class QuestionBank:
    """Canonical, immutable, ordered question lists keyed by edition id."""

    def __init__(self, questions: Mapping[str, Sequence[Question]]):
        self._questions: Dict[str, Tuple[Question, ...]] = {}
        for edition_id, items in questions.items():
            edition = get_edition(edition_id)
            self._questions[edition.id] = tuple(items)

    def questions(self, edition_id: str) -> Tuple[Question, ...]:
        edition = get_edition(edition_id)
        return self._questions.get(edition.id, ())

    def size(self, edition_id: str) -> int:
        return len(self.questions(edition_id))

    def get(self, edition_id: str, index: int) -> Question:
        items = self.questions(edition_id)
        if not 0 <= index < len(items):
            raise IndexError(f"Question {index} out of range for edition {edition_id}")
        return items[index]

    def editions(self) -> list[str]:
        return sorted(self._questions)
