"""
Quiz engine entry points.

Every call takes an explicit SessionContext for one principal; there is no
process-wide "current user". The context is updated in place so a caller can
keep it across calls, or build a fresh one per request and let the engine
restore the saved session.

For a terminal grade the side effects run in a fixed order: progress update,
quota increment, snapshot write. A crash between them leaves progress and
quota consistent with "this answer happened"; a stale snapshot is repaired by
the restore fallback chain.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from quiz_engine.editions import QuestionBank, get_edition
from quiz_engine.errors import GradingOracleFailure, InvalidAnswer, NoActiveSession
from quiz_engine.grading import GradingOracle
from quiz_engine.history import AttemptHistory, CompletedAttempt, FocusedPracticeSummary
from quiz_engine.models import Grade, SessionStatus, StudyMode, StyleMode
from quiz_engine.persistence import SessionPersistence, SnapshotStore
from quiz_engine.principal import Authenticated, Principal
from quiz_engine.progress import ProgressRecord, ProgressStats, ProgressStore
from quiz_engine.quota import FREE_DAILY_LIMIT, QuotaExceeded, QuotaGate, QuotaRecord, QuotaStore, utcnow
from quiz_engine.selector import QuestionSelector
from quiz_engine.session_state import SessionState

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    principal: Principal
    session: Optional[SessionState] = None
    notice: Optional[str] = None

    @property
    def owner_key(self) -> str:
        return self.principal.key

    @property
    def account_id(self) -> Optional[int]:
        if isinstance(self.principal, Authenticated):
            return self.principal.account_id
        return None


@dataclass(frozen=True)
class AnswerOutcome:
    grade: Grade
    feedback: str
    session_status: SessionStatus
    question_index: int
    retry_allowed: bool = False
    persisted: bool = True
    attempt: Optional[CompletedAttempt] = None
    focused_summary: Optional[FocusedPracticeSummary] = None


@dataclass(frozen=True)
class ResumeResult:
    sequence: List[int]
    cursor: int
    correct_count: int
    incorrect_count: int
    retry_pending: bool
    notice: Optional[str] = None

    @property
    def switched_to_random(self) -> bool:
        return self.notice is not None


class QuizEngine:
    def __init__(
        self,
        bank: QuestionBank,
        oracle: GradingOracle,
        progress: ProgressStore,
        quota_store: QuotaStore,
        snapshots: SnapshotStore,
        history: AttemptHistory,
        selector: Optional[QuestionSelector] = None,
        daily_limit: int = FREE_DAILY_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.bank = bank
        self.oracle = oracle
        self.progress = progress
        self.history = history
        self.selector = selector or QuestionSelector()
        self.quota = QuotaGate(quota_store, daily_limit=daily_limit, clock=clock)
        self.persistence = SessionPersistence(snapshots, self.selector, bank)

    def _load_progress(self, ctx: SessionContext, edition: str) -> ProgressRecord:
        # Guests have no long-lived progress; every selection treats them as new.
        if ctx.account_id is None:
            return ProgressRecord()
        return self.progress.load(ctx.account_id, edition)

    def start_session(
        self,
        ctx: SessionContext,
        edition: str,
        study_mode: Union[StudyMode, str] = StudyMode.RANDOM,
        mode: Union[StyleMode, str] = StyleMode.FORMAL,
    ) -> List[int]:
        """
        Discard any previous attempt and start a new one.

        Raises SelectionExhausted when focused mode has nothing to review; the
        previous session (if any) is left as it was.
        """
        policy = get_edition(edition)
        state = SessionState(edition=policy.id, mode=StyleMode(mode), study_mode=StudyMode(study_mode))
        sequence = state.start(self.selector, self._load_progress(ctx, policy.id), self.bank.size(policy.id))

        ctx.session = state
        ctx.notice = None
        self.persistence.save(ctx.owner_key, state)
        return sequence

    def _restore(self, ctx: SessionContext) -> Optional[SessionState]:
        restored = self.persistence.restore(ctx.owner_key, lambda e: self._load_progress(ctx, e))
        if restored is None:
            return None
        ctx.session = restored.state
        ctx.notice = restored.notice
        if restored.regenerated:
            self.persistence.save(ctx.owner_key, restored.state)
        return restored.state

    def _active(self, ctx: SessionContext) -> SessionState:
        if ctx.session is None:
            self._restore(ctx)
        state = ctx.session
        if state is None or state.status is not SessionStatus.IN_PROGRESS:
            raise NoActiveSession("No quiz in progress")
        return state

    def resume_session(self, ctx: SessionContext) -> ResumeResult:
        state = self._active(ctx)
        return ResumeResult(
            sequence=list(state.sequence),
            cursor=state.cursor,
            correct_count=state.correct_count,
            incorrect_count=state.incorrect_count,
            retry_pending=state.grading.awaiting_retry,
            notice=ctx.notice,
        )

    async def submit_answer(self, ctx: SessionContext, user_text: str) -> Union[AnswerOutcome, QuotaExceeded]:
        state = self._active(ctx)
        text = (user_text or "").strip()
        if not text:
            raise InvalidAnswer("Please enter an answer before submitting")

        # A retry belongs to a question that was already admitted.
        if not state.grading.awaiting_retry:
            exceeded = self.quota.admit(ctx.owner_key)
            if exceeded is not None:
                return exceeded

        index = state.current_index
        question = self.bank.get(state.edition, index)
        try:
            result = await self.oracle.grade(question.prompt, question.accepted_answer, text, state.mode)
        except GradingOracleFailure as e:
            logger.error("grading failed owner=%s edition=%s index=%s: %s", ctx.owner_key, state.edition, index, e)
            raise
        except Exception as e:
            logger.exception("grading oracle error owner=%s edition=%s index=%s", ctx.owner_key, state.edition, index)
            raise GradingOracleFailure(str(e) or "Grading failed", cause=e) from e

        terminal = state.grading.apply(result)
        if terminal is None:
            persisted = self.persistence.save(ctx.owner_key, state)
            return AnswerOutcome(
                grade=Grade.PARTIAL,
                feedback=result.feedback,
                session_status=state.status,
                question_index=index,
                retry_allowed=True,
                persisted=persisted,
            )

        state.record_terminal(question, text, terminal)
        if ctx.account_id is not None:
            self.progress.record_outcome(ctx.account_id, state.edition, index, terminal.grade)
        self.quota.increment(ctx.owner_key)

        attempt = None
        summary = None
        if state.is_finished:
            attempt, summary = self._retire(ctx, state)
            persisted = self.persistence.clear(ctx.owner_key)
        else:
            persisted = self.persistence.save(ctx.owner_key, state)

        return AnswerOutcome(
            grade=terminal.grade,
            feedback=terminal.feedback,
            session_status=state.status,
            question_index=index,
            persisted=persisted,
            attempt=attempt,
            focused_summary=summary,
        )

    def _retire(self, ctx: SessionContext, state: SessionState):
        attempt = CompletedAttempt.from_state(state)
        if ctx.account_id is not None:
            attempt = self.history.append(ctx.account_id, attempt)
        summary = None
        if state.study_mode is StudyMode.FOCUSED:
            summary = FocusedPracticeSummary.from_state(state)
        return attempt, summary

    def check_quota(self, ctx: SessionContext) -> bool:
        return self.quota.check(ctx.owner_key)

    def quota_status(self, ctx: SessionContext) -> QuotaRecord:
        return self.quota.check_and_reset(ctx.owner_key)

    def reset_progress(self, ctx: SessionContext, edition: str) -> None:
        policy = get_edition(edition)
        if ctx.account_id is None:
            return
        self.progress.reset(ctx.account_id, policy.id)
        logger.info("progress reset account=%s edition=%s", ctx.account_id, policy.id)

    def progress_stats(self, ctx: SessionContext, edition: str) -> ProgressStats:
        policy = get_edition(edition)
        total = self.bank.size(policy.id)
        if ctx.account_id is None:
            return ProgressStats.from_record(policy.id, ProgressRecord(), total)
        return self.progress.stats(ctx.account_id, policy.id, total)

    def list_attempts(self, ctx: SessionContext, limit: int = 50) -> List[CompletedAttempt]:
        if ctx.account_id is None:
            return []
        return self.history.list(ctx.account_id, limit=limit)

    def best_score(self, ctx: SessionContext, edition: str) -> int:
        if ctx.account_id is None:
            return 0
        return self.history.best_score(ctx.account_id, get_edition(edition).id)
