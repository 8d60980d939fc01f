"""
Shared value types for the quiz engine.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict


class Grade(str, Enum):
    """Outcome of grading one answer."""
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"

    @property
    def is_terminal(self) -> bool:
        return self is not Grade.PARTIAL


class SessionStatus(str, Enum):
    """Session status."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.PASSED, SessionStatus.FAILED)


class StudyMode(str, Enum):
    """Question selection strategy."""
    RANDOM = "random"
    FOCUSED = "focused"


class StyleMode(str, Enum):
    """Presentation style of the grader's feedback. Orthogonal to grading."""
    FORMAL = "formal"
    COMEDY = "comedy"


@dataclass(frozen=True)
class Question:
    prompt: str
    accepted_answer: str


@dataclass
class QuestionResult:
    question_text: str
    user_answer: str
    accepted_answer: str
    grade: Grade
    feedback: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["grade"] = self.grade.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionResult":
        return cls(
            question_text=str(data.get("question_text", "")),
            user_answer=str(data.get("user_answer", "")),
            accepted_answer=str(data.get("accepted_answer", "")),
            grade=Grade(data.get("grade", Grade.INCORRECT.value)),
            feedback=str(data.get("feedback", "")),
        )
