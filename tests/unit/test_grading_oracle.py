"""Unit tests for the LLM grading oracle and grade normalization."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from quiz_engine.errors import GradingOracleFailure
from quiz_engine.models import Grade, StyleMode
from quiz_infra.grading.oracle import FALLBACK_FEEDBACK, GradingResponse, LLMGradingOracle, normalize_grade
from quiz_infra.grading.prompts import build_grading_prompt


def llm_returning(response=None, error=None):
    llm = MagicMock()
    llm.generate_structured = AsyncMock(return_value=response, side_effect=error)
    return llm


@pytest.mark.unit
class TestNormalizeGrade:
    @pytest.mark.parametrize("raw, expected", [
        ("correct", Grade.CORRECT),
        ("CORRECT", Grade.CORRECT),
        (" Partial ", Grade.PARTIAL),
        ("incorrect", Grade.INCORRECT),
        ("corect", Grade.CORRECT),
        ("incorect", Grade.INCORRECT),
        ("maybe", Grade.INCORRECT),
        ("", Grade.INCORRECT),
        (None, Grade.INCORRECT),
    ])
    def test_labels(self, raw, expected):
        assert normalize_grade(raw) is expected


@pytest.mark.unit
class TestPrompts:
    def test_formal_prompt_carries_question_and_answers(self):
        prompt = build_grading_prompt("Who makes federal laws?", "Congress", "the senate", StyleMode.FORMAL)
        assert "Who makes federal laws?" in prompt
        assert "Congress" in prompt
        assert "the senate" in prompt
        assert "interviewer" in prompt

    def test_comedy_prompt_differs(self):
        formal = build_grading_prompt("q", "a", "u", StyleMode.FORMAL)
        comedy = build_grading_prompt("q", "a", "u", "comedy")
        assert formal != comedy
        assert "comedian" in comedy


@pytest.mark.unit
class TestLLMGradingOracle:
    @pytest.mark.asyncio
    async def test_returns_normalized_grade(self):
        llm = llm_returning(GradingResponse(grade="Corect", feedback="  That's correct.  "))
        oracle = LLMGradingOracle(llm, timeout=5.0)
        result = await oracle.grade("q", "a", "u", StyleMode.FORMAL)
        assert result.grade is Grade.CORRECT
        assert result.feedback == "That's correct."
        _, kwargs = llm.generate_structured.call_args
        assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_empty_feedback_gets_fallback(self):
        oracle = LLMGradingOracle(llm_returning(GradingResponse(grade="partial", feedback="")))
        result = await oracle.grade("q", "a", "u", StyleMode.COMEDY)
        assert result.grade is Grade.PARTIAL
        assert result.feedback == FALLBACK_FEEDBACK

    @pytest.mark.asyncio
    async def test_timeout_becomes_oracle_failure(self):
        oracle = LLMGradingOracle(llm_returning(error=TimeoutError("slow")))
        with pytest.raises(GradingOracleFailure) as excinfo:
            await oracle.grade("q", "a", "u", StyleMode.FORMAL)
        assert excinfo.value.retryable is True
        assert isinstance(excinfo.value.cause, TimeoutError)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_oracle_failure(self):
        oracle = LLMGradingOracle(llm_returning(error=ConnectionError("refused")))
        with pytest.raises(GradingOracleFailure):
            await oracle.grade("q", "a", "u", StyleMode.FORMAL)

    @pytest.mark.asyncio
    async def test_no_result_is_failure(self):
        oracle = LLMGradingOracle(llm_returning(None))
        with pytest.raises(GradingOracleFailure):
            await oracle.grade("q", "a", "u", StyleMode.FORMAL)
