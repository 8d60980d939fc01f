"""Unit tests for the per-position grading state machine."""
import pytest

from quiz_engine.errors import InvalidTransition
from quiz_engine.grading import GradeResult, GradingStateMachine, PositionState
from quiz_engine.models import Grade

CORRECT = GradeResult(Grade.CORRECT, "yes")
PARTIAL = GradeResult(Grade.PARTIAL, "be more specific")
INCORRECT = GradeResult(Grade.INCORRECT, "no")


@pytest.mark.unit
class TestGradingStateMachine:
    @pytest.mark.parametrize("result", [CORRECT, INCORRECT])
    def test_terminal_on_first_answer(self, result):
        machine = GradingStateMachine()
        assert machine.apply(result) == result
        assert machine.state is PositionState.TERMINAL

    def test_partial_allows_one_retry(self):
        machine = GradingStateMachine()
        assert machine.apply(PARTIAL) is None
        assert machine.awaiting_retry
        assert machine.apply(CORRECT) == CORRECT

    def test_second_partial_is_clamped(self):
        machine = GradingStateMachine()
        machine.apply(PARTIAL)
        result = machine.apply(PARTIAL)
        assert result.grade is Grade.INCORRECT
        assert result.feedback == PARTIAL.feedback
        assert machine.state is PositionState.TERMINAL

    def test_no_grade_after_terminal(self):
        machine = GradingStateMachine()
        machine.apply(CORRECT)
        with pytest.raises(InvalidTransition):
            machine.apply(CORRECT)

    def test_advance_resets(self):
        machine = GradingStateMachine()
        machine.apply(PARTIAL)
        machine.apply(INCORRECT)
        machine.advance(1)
        assert machine.position == 1
        assert machine.state is PositionState.PENDING
