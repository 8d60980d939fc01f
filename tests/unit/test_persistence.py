"""Unit tests for session snapshots and the restore fallback chain."""
import pytest

from quiz_engine.editions import QuestionBank
from quiz_engine.errors import PersistenceWriteFailure, RestorationFailed
from quiz_engine.grading import GradeResult
from quiz_engine.models import Grade, Question, SessionStatus, StudyMode, StyleMode
from quiz_engine.persistence import (
    SWITCHED_TO_RANDOM_NOTICE,
    InMemorySnapshotStore,
    SessionPersistence,
    snapshot_of,
)
from quiz_engine.progress import ProgressRecord
from quiz_engine.session_state import SessionState

OWNER = "account:1"


def no_progress(edition):
    return ProgressRecord()


@pytest.fixture
def store():
    return InMemorySnapshotStore()


@pytest.fixture
def persistence(store, selector, bank):
    return SessionPersistence(store, selector, bank)


def in_progress(sequence, edition="A", **kwargs):
    state = SessionState(edition=edition, **kwargs)
    state.begin(sequence)
    return state


@pytest.mark.unit
class TestRestore:
    def test_identical_order(self, persistence, bank):
        state = in_progress([5, 2, 9, 0, 11, 3, 7, 1, 4, 6], mode=StyleMode.COMEDY)
        state.record_terminal(bank.get("A", 5), "answer", GradeResult(Grade.CORRECT, "ok"))
        assert persistence.save(OWNER, state)

        restored = persistence.restore(OWNER, no_progress)
        assert restored.regenerated is False
        assert restored.notice is None
        assert restored.state.sequence == state.sequence
        assert restored.state.cursor == 1
        assert restored.state.correct_count == 1
        assert restored.state.mode is StyleMode.COMEDY
        assert restored.state.results[0].grade is Grade.CORRECT

    def test_pending_retry_survives(self, persistence):
        state = in_progress([1, 2, 3])
        state.grading.apply(GradeResult(Grade.PARTIAL, "more please"))
        persistence.save(OWNER, state)
        assert persistence.restore(OWNER, no_progress).state.grading.awaiting_retry

    def test_nothing_saved(self, persistence):
        assert persistence.restore(OWNER, no_progress) is None

    def test_finished_session_is_not_resumed(self, persistence, store):
        payload = snapshot_of(in_progress([1, 2, 3]))
        payload["status"] = SessionStatus.PASSED.value
        store.save(OWNER, payload)
        assert persistence.restore(OWNER, no_progress) is None

    def test_unknown_edition_is_discarded(self, persistence, store):
        payload = snapshot_of(in_progress([1, 2, 3]))
        payload["edition"] = "Q"
        store.save(OWNER, payload)
        assert persistence.restore(OWNER, no_progress) is None


@pytest.mark.unit
class TestShrunkBank:
    def test_out_of_range_indices_are_dropped(self, persistence, store):
        payload = snapshot_of(in_progress([3, 15, 7, 40]))
        store.save(OWNER, payload)
        restored = persistence.restore(OWNER, no_progress)
        assert restored.regenerated is False
        assert restored.state.sequence == [3, 7]

    def test_dropped_answered_index_does_not_skip_next_question(self, persistence, store, bank):
        state = in_progress([5, 3, 7, 9])
        state.record_terminal(bank.get("A", 5), "answer", GradeResult(Grade.CORRECT, "ok"))
        payload = snapshot_of(state)
        payload["sequence"] = [50, 3, 7, 9]
        store.save(OWNER, payload)

        restored = persistence.restore(OWNER, no_progress).state
        assert restored.sequence == [3, 7, 9]
        assert restored.cursor == 0
        assert restored.current_index == 3
        assert restored.correct_count == 0
        assert restored.results == []

    def test_dropped_index_between_answers_keeps_surviving_results(self, persistence, store, bank):
        state = in_progress([3, 5, 7, 9])
        state.record_terminal(bank.get("A", 3), "answer", GradeResult(Grade.CORRECT, "ok"))
        state.record_terminal(bank.get("A", 5), "wrong", GradeResult(Grade.INCORRECT, "no"))
        payload = snapshot_of(state)
        payload["sequence"] = [3, 50, 7, 9]
        store.save(OWNER, payload)

        restored = persistence.restore(OWNER, no_progress)
        assert restored.regenerated is False
        assert restored.state.sequence == [3, 7, 9]
        assert restored.state.cursor == 1
        assert restored.state.current_index == 7
        assert restored.state.correct_count == 1
        assert restored.state.incorrect_count == 0
        assert [r.user_answer for r in restored.state.results] == ["answer"]

    def test_all_indices_invalid_regenerates(self, persistence, store, bank):
        payload = snapshot_of(in_progress([3, 4, 5]))
        payload["sequence"] = [100, 101, "x", None]
        store.save(OWNER, payload)
        restored = persistence.restore(OWNER, no_progress)
        assert restored.regenerated is True
        assert restored.state.status is SessionStatus.IN_PROGRESS
        assert len(restored.state.sequence) == 10
        assert all(0 <= i < bank.size("A") for i in restored.state.sequence)

    def test_cursor_past_filtered_sequence_regenerates(self, persistence, store):
        payload = snapshot_of(in_progress([3, 50, 51]))
        payload["cursor"] = 2
        store.save(OWNER, payload)
        restored = persistence.restore(OWNER, no_progress)
        assert restored.regenerated is True
        assert restored.state.cursor == 0

    def test_focused_with_nothing_missed_switches_to_random(self, persistence, store):
        payload = snapshot_of(in_progress([60, 61], study_mode=StudyMode.FOCUSED))
        store.save(OWNER, payload)
        restored = persistence.restore(OWNER, no_progress)
        assert restored.state.study_mode is StudyMode.RANDOM
        assert restored.notice == SWITCHED_TO_RANDOM_NOTICE
        assert len(restored.state.sequence) == 10

    def test_focused_regeneration_uses_current_progress(self, persistence, store):
        payload = snapshot_of(in_progress([60, 61], study_mode=StudyMode.FOCUSED))
        store.save(OWNER, payload)
        restored = persistence.restore(OWNER, lambda e: ProgressRecord(asked={1, 2, 3}, correct={2}))
        assert restored.state.study_mode is StudyMode.FOCUSED
        assert sorted(restored.state.sequence) == [1, 3]
        assert restored.notice is None

    def test_empty_bank_fails_loudly(self, selector, store):
        persistence = SessionPersistence(store, selector, QuestionBank({"A": []}))
        store.save(OWNER, snapshot_of(in_progress([1, 2])))
        with pytest.raises(RestorationFailed):
            persistence.restore(OWNER, no_progress)


class FailingStore(InMemorySnapshotStore):
    def save(self, owner_key, payload):
        raise PersistenceWriteFailure("disk full")

    def clear(self, owner_key):
        raise PersistenceWriteFailure("disk full")


@pytest.mark.unit
class TestWriteFailure:
    def test_failure_is_reported_not_raised(self, selector):
        persistence = SessionPersistence(FailingStore(), selector, QuestionBank({"A": [Question("q", "a")]}))
        state = in_progress([0])
        assert persistence.save(OWNER, state) is False
        assert persistence.clear(OWNER) is False
