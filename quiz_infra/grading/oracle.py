"""
LLM-backed grading oracle.

The model is asked for a structured {grade, feedback} reply. Its grade label
is normalized before it reaches the engine: case is ignored, the common
misspellings "corect" and "incorect" are accepted, and anything else is
treated as incorrect.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from quiz_engine.errors import GradingOracleFailure
from quiz_engine.grading import GradeResult, GradingOracle
from quiz_engine.models import Grade, StyleMode
from quiz_infra.grading.prompts import build_grading_prompt
from quiz_infra.llm.base import LLM

logger = logging.getLogger(__name__)

GRADE_ALIASES = {
    "correct": Grade.CORRECT,
    "corect": Grade.CORRECT,
    "partial": Grade.PARTIAL,
    "incorrect": Grade.INCORRECT,
    "incorect": Grade.INCORRECT,
}

FALLBACK_FEEDBACK = "Unable to evaluate the answer in detail."


class GradingResponse(BaseModel):
    """Structured reply expected from the grading model."""
    grade: str = Field(description='One of "correct", "partial" or "incorrect"')
    feedback: str = Field(default="", description="Feedback shown to the applicant")


def normalize_grade(raw: Optional[str]) -> Grade:
    label = (raw or "").strip().lower()
    grade = GRADE_ALIASES.get(label)
    if grade is None:
        logger.warning("unrecognized grade label %r, treating as incorrect", raw)
        return Grade.INCORRECT
    return grade


class LLMGradingOracle(GradingOracle):
    def __init__(self, llm: LLM, timeout: Optional[float] = None):
        self.llm = llm
        self.timeout = timeout

    async def grade(
        self,
        question: str,
        accepted_answer: str,
        user_answer: str,
        style: StyleMode,
    ) -> GradeResult:
        prompt = build_grading_prompt(question, accepted_answer, user_answer, style)
        try:
            response = await self.llm.generate_structured(prompt, GradingResponse, timeout=self.timeout)
        except TimeoutError as e:
            raise GradingOracleFailure("Grading timed out, please try again", cause=e) from e
        except Exception as e:
            logger.error(f"Grading call failed: {e}")
            raise GradingOracleFailure(cause=e) from e

        if response is None:
            raise GradingOracleFailure("Grading service returned no result")

        feedback = (response.feedback or "").strip() or FALLBACK_FEEDBACK
        return GradeResult(grade=normalize_grade(response.grade), feedback=feedback)
