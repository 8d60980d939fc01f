"""
Grading oracle contract and the per-position grading state machine.

Each sequence position moves Pending -> Terminal, or Pending -> Retried ->
Terminal when the first answer is graded partial. A second partial on the same
position is clamped to incorrect, so every position yields exactly one
terminal grade.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from quiz_engine.errors import InvalidTransition
from quiz_engine.models import Grade, StyleMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeResult:
    grade: Grade
    feedback: str


class GradingOracle(ABC):
    """
    Defines the contract for graders.

    Implementations raise GradingOracleFailure when no grade can be produced.
    """

    @abstractmethod
    async def grade(
        self,
        question: str,
        accepted_answer: str,
        user_answer: str,
        style: StyleMode,
    ) -> GradeResult:
        raise NotImplementedError


class PositionState(str, Enum):
    PENDING = "pending"
    RETRIED = "retried"
    TERMINAL = "terminal"


@dataclass
class GradingStateMachine:
    position: int = 0
    state: PositionState = PositionState.PENDING

    @property
    def awaiting_retry(self) -> bool:
        return self.state is PositionState.RETRIED

    def apply(self, result: GradeResult) -> Optional[GradeResult]:
        """
        Feed one oracle result for the current position.

        Returns the terminal result, or None when the answer was partial and
        one more submission is allowed.
        """
        if self.state is PositionState.TERMINAL:
            raise InvalidTransition(f"Position {self.position} already has a terminal grade")

        if result.grade is Grade.PARTIAL:
            if self.state is PositionState.PENDING:
                self.state = PositionState.RETRIED
                return None
            logger.info("position=%s second partial clamped to incorrect", self.position)
            result = GradeResult(grade=Grade.INCORRECT, feedback=result.feedback)

        self.state = PositionState.TERMINAL
        return result

    def advance(self, position: int) -> None:
        self.position = position
        self.state = PositionState.PENDING
