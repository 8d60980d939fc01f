"""
Session snapshots and the restore fallback chain.

Snapshots hold the sequence as canonical indices, never question text, so a
changed question bank can be detected instead of silently mis-mapping a saved
session. Restoring walks an ordered chain and always ends with a usable
session or RestorationFailed:

1. saved indices that are still in range, in their saved order
2. a fresh selection with the saved edition and study mode
3. random mode, when focused mode has nothing left to review
4. the whole canonical list, shuffled
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from quiz_engine.editions import Edition, QuestionBank, get_edition
from quiz_engine.errors import (
    PersistenceWriteFailure,
    QuestionBankEmpty,
    RestorationFailed,
    RestorationInvalid,
    SelectionExhausted,
    UnknownEdition,
)
from quiz_engine.grading import GradingStateMachine, PositionState
from quiz_engine.models import Grade, QuestionResult, SessionStatus, StudyMode, StyleMode
from quiz_engine.progress import ProgressRecord
from quiz_engine.quota import utcnow
from quiz_engine.selector import QuestionSelector
from quiz_engine.session_state import SessionState

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
SWITCHED_TO_RANDOM_NOTICE = "No incorrect questions left to review. Switched to random mode."


class SnapshotStore(ABC):
    """
    Defines the contract for snapshot storage, keyed by principal key.

    save and clear raise PersistenceWriteFailure when the write did not happen.
    """

    @abstractmethod
    def load(self, owner_key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def save(self, owner_key: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self, owner_key: str) -> None:
        raise NotImplementedError


class InMemorySnapshotStore(SnapshotStore):
    def __init__(self):
        self._payloads: Dict[str, Dict[str, Any]] = {}

    def load(self, owner_key: str) -> Optional[Dict[str, Any]]:
        payload = self._payloads.get(owner_key)
        return dict(payload) if payload is not None else None

    def save(self, owner_key: str, payload: Dict[str, Any]) -> None:
        self._payloads[owner_key] = dict(payload)

    def clear(self, owner_key: str) -> None:
        self._payloads.pop(owner_key, None)


@dataclass
class RestoredSession:
    state: SessionState
    notice: Optional[str] = None
    regenerated: bool = False


def snapshot_of(state: SessionState) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "edition": state.edition,
        "mode": state.mode.value,
        "study_mode": state.study_mode.value,
        "status": state.status.value,
        "sequence": list(state.sequence),
        "cursor": state.cursor,
        "correct_count": state.correct_count,
        "incorrect_count": state.incorrect_count,
        "results": [r.to_dict() for r in state.results],
        "retry_pending": state.grading.awaiting_retry,
        "saved_at": utcnow().isoformat(),
    }


def _enum_or_default(enum_cls, value, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SessionPersistence:
    def __init__(self, store: SnapshotStore, selector: QuestionSelector, bank: QuestionBank):
        self.store = store
        self.selector = selector
        self.bank = bank

    def save(self, owner_key: str, state: SessionState) -> bool:
        """Write a snapshot. A failed write is logged and reported, never raised."""
        try:
            self.store.save(owner_key, snapshot_of(state))
            return True
        except PersistenceWriteFailure as e:
            logger.warning("snapshot write failed owner=%s cursor=%s: %s", owner_key, state.cursor, e)
            return False

    def clear(self, owner_key: str) -> bool:
        try:
            self.store.clear(owner_key)
            return True
        except PersistenceWriteFailure as e:
            logger.warning("snapshot clear failed owner=%s: %s", owner_key, e)
            return False

    def restore(
        self,
        owner_key: str,
        load_progress: Callable[[str], ProgressRecord],
    ) -> Optional[RestoredSession]:
        """
        Rebuild the in-progress session saved for owner_key.

        Returns None when nothing resumable was saved. load_progress is called
        with the edition id only if the sequence has to be regenerated.
        """
        data = self.store.load(owner_key)
        if not data:
            return None
        if data.get("status") != SessionStatus.IN_PROGRESS.value:
            return None
        try:
            edition = get_edition(data.get("edition"))
        except UnknownEdition:
            logger.warning("discarding snapshot owner=%s with unknown edition %r", owner_key, data.get("edition"))
            return None

        mode = _enum_or_default(StyleMode, data.get("mode"), StyleMode.FORMAL)
        study_mode = _enum_or_default(StudyMode, data.get("study_mode"), StudyMode.RANDOM)
        canonical_size = self.bank.size(edition.id)

        saved = data.get("sequence")
        saved = saved if isinstance(saved, list) else []
        keep = [_is_index(i) and 0 <= i < canonical_size for i in saved]
        if not all(keep):
            invalid = [i for i, ok in zip(saved, keep) if not ok]
            logger.warning("owner=%s %s", owner_key, RestorationInvalid(edition.id, invalid, canonical_size))

        if any(keep):
            state = self._rebuild(edition, mode, study_mode, saved, keep, data)
            if state is not None:
                return RestoredSession(state=state)

        return self._regenerate(owner_key, edition, mode, study_mode, load_progress(edition.id), canonical_size)

    def _rebuild(
        self,
        edition: Edition,
        mode: StyleMode,
        study_mode: StudyMode,
        saved: List[Any],
        keep: List[bool],
        data: Dict[str, Any],
    ) -> Optional[SessionState]:
        """
        Rebuild from the in-range part of the saved order.

        The cursor counts only surviving answered entries, so dropping an
        index never skips an unanswered question. When per-question results
        line up with the answered entries they are trimmed the same way and
        the counts are recomputed from them.
        """
        try:
            saved_cursor = int(data.get("cursor", 0))
            if saved_cursor < 0:
                return None
            answered_keep = keep[:saved_cursor]
            sequence = [i for i, ok in zip(saved, keep) if ok]
            cursor = sum(answered_keep)
            if cursor >= len(sequence):
                # Nothing left to present from the saved order.
                return None

            results = [QuestionResult.from_dict(r) for r in (data.get("results") or [])]
            correct_count = max(0, int(data.get("correct_count", 0)))
            incorrect_count = max(0, int(data.get("incorrect_count", 0)))
            if len(results) == len(answered_keep):
                if not all(answered_keep):
                    results = [r for r, ok in zip(results, answered_keep) if ok]
                    correct_count = sum(1 for r in results if r.grade is Grade.CORRECT)
                    incorrect_count = len(results) - correct_count
            else:
                results = results[:cursor]

            state = SessionState(
                edition=edition.id,
                mode=mode,
                study_mode=study_mode,
                status=SessionStatus.IN_PROGRESS,
                sequence=sequence,
                cursor=cursor,
                correct_count=correct_count,
                incorrect_count=incorrect_count,
                results=results,
            )
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("unreadable snapshot for edition=%s, regenerating: %s", edition.id, e)
            return None

        state.grading = GradingStateMachine(
            position=cursor,
            state=PositionState.RETRIED if data.get("retry_pending") else PositionState.PENDING,
        )
        return state

    def _regenerate(
        self,
        owner_key: str,
        edition: Edition,
        mode: StyleMode,
        study_mode: StudyMode,
        progress: ProgressRecord,
        canonical_size: int,
    ) -> RestoredSession:
        notice = None
        try:
            sequence = self.selector.select(edition, study_mode, progress, canonical_size)
        except SelectionExhausted:
            logger.info("owner=%s focused selection exhausted on restore, switching to random", owner_key)
            study_mode = StudyMode.RANDOM
            notice = SWITCHED_TO_RANDOM_NOTICE
            sequence = self._random_or_everything(edition, progress, canonical_size)
        except QuestionBankEmpty:
            sequence = []

        if not sequence:
            sequence = self.selector.shuffled(range(canonical_size))
        if not sequence:
            raise RestorationFailed(f"No questions available to resume edition {edition.id}")

        state = SessionState(edition=edition.id, mode=mode, study_mode=study_mode)
        state.begin(sequence)
        logger.info("owner=%s session regenerated edition=%s questions=%d", owner_key, edition.id, len(sequence))
        return RestoredSession(state=state, notice=notice, regenerated=True)

    def _random_or_everything(self, edition: Edition, progress: ProgressRecord, canonical_size: int) -> List[int]:
        try:
            return self.selector.select_random(edition, progress, canonical_size)
        except QuestionBankEmpty:
            return []
