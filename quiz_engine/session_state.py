"""
In-memory state of one quiz attempt.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from quiz_engine.editions import Edition, get_edition
from quiz_engine.errors import InvalidTransition
from quiz_engine.grading import GradeResult, GradingStateMachine
from quiz_engine.models import Grade, Question, QuestionResult, SessionStatus, StudyMode, StyleMode
from quiz_engine.progress import ProgressRecord
from quiz_engine.selector import QuestionSelector

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """
    Materialized sequence, cursor, running counts and terminal status.

    Status only moves forward: NOT_STARTED -> IN_PROGRESS -> PASSED|FAILED.
    Starting over means building a new SessionState.
    """
    edition: str
    mode: StyleMode = StyleMode.FORMAL
    study_mode: StudyMode = StudyMode.RANDOM
    status: SessionStatus = SessionStatus.NOT_STARTED
    sequence: List[int] = field(default_factory=list)
    cursor: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    results: List[QuestionResult] = field(default_factory=list)
    grading: GradingStateMachine = field(default_factory=GradingStateMachine)

    def __post_init__(self):
        self.edition = get_edition(self.edition).id
        if not 0 <= self.cursor <= len(self.sequence):
            raise ValueError(f"cursor {self.cursor} outside 0..{len(self.sequence)}")
        if len(self.results) > len(self.sequence):
            raise ValueError("more results than questions in the sequence")

    @property
    def policy(self) -> Edition:
        return get_edition(self.edition)

    @property
    def is_finished(self) -> bool:
        return self.status.is_terminal

    @property
    def current_index(self) -> Optional[int]:
        if self.status is not SessionStatus.IN_PROGRESS or self.cursor >= len(self.sequence):
            return None
        return self.sequence[self.cursor]

    @property
    def total_asked(self) -> int:
        return self.correct_count + self.incorrect_count

    def counts(self) -> Dict[str, int]:
        return {"correct": self.correct_count, "incorrect": self.incorrect_count}

    def start(self, selector: QuestionSelector, progress: ProgressRecord, canonical_size: int) -> List[int]:
        if self.status is not SessionStatus.NOT_STARTED:
            raise InvalidTransition(f"Cannot start a session that is {self.status.value}")
        # Select before touching state so a failed selection leaves the session untouched.
        sequence = selector.select(self.policy, self.study_mode, progress, canonical_size)
        self.begin(sequence)
        return sequence

    def begin(self, sequence: List[int]) -> None:
        if self.status is not SessionStatus.NOT_STARTED:
            raise InvalidTransition(f"Cannot start a session that is {self.status.value}")
        if not sequence:
            raise ValueError("Cannot start a session with an empty sequence")
        self.sequence = list(sequence)
        self.cursor = 0
        self.correct_count = 0
        self.incorrect_count = 0
        self.results = []
        self.grading = GradingStateMachine()
        self.status = SessionStatus.IN_PROGRESS
        logger.info(
            "session started edition=%s study_mode=%s questions=%d",
            self.edition, self.study_mode.value, len(self.sequence),
        )

    def record_terminal(self, question: Question, user_answer: str, result: GradeResult) -> int:
        """Apply a terminal grade to the current position. Returns the canonical index answered."""
        index = self.current_index
        if index is None:
            raise InvalidTransition("No question is pending in this session")
        if not result.grade.is_terminal:
            raise ValueError("record_terminal requires a terminal grade")

        if result.grade is Grade.CORRECT:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self.results.append(
            QuestionResult(
                question_text=question.prompt,
                user_answer=user_answer,
                accepted_answer=question.accepted_answer,
                grade=result.grade,
                feedback=result.feedback,
            )
        )
        self.cursor += 1
        self.grading.advance(self.cursor)
        self.check_completion()
        return index

    def check_completion(self) -> SessionStatus:
        if self.status is not SessionStatus.IN_PROGRESS:
            return self.status
        policy = self.policy
        if self.correct_count >= policy.pass_threshold:
            self.status = SessionStatus.PASSED
        elif self.incorrect_count >= policy.fail_threshold:
            self.status = SessionStatus.FAILED
        elif self.cursor >= len(self.sequence):
            passed = self.correct_count >= policy.pass_threshold
            self.status = SessionStatus.PASSED if passed else SessionStatus.FAILED

        if self.status.is_terminal:
            logger.info(
                "session finished edition=%s status=%s correct=%d incorrect=%d shown=%d/%d",
                self.edition, self.status.value, self.correct_count, self.incorrect_count,
                self.cursor, len(self.sequence),
            )
        return self.status
