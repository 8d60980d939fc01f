"""
Quiz service: wires the engine to the SQL stores and shapes API responses.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session as DBSession

from quiz_api.schemas.progress_schemas import ProgressResponse
from quiz_api.schemas.quiz_schemas import (
    AnswerResponse,
    AttemptListResponse,
    AttemptResponse,
    FocusedSummaryResponse,
    QuestionPayload,
    QuestionResultResponse,
    QuotaExceededResponse,
    QuotaResponse,
    SessionResponse,
)
from quiz_api.services.stores import SqlAttemptHistory, SqlProgressStore, SqlQuotaStore, SqlSnapshotStore
from quiz_engine.editions import EDITIONS, QuestionBank
from quiz_engine.engine import QuizEngine, SessionContext
from quiz_engine.grading import GradingOracle
from quiz_engine.history import CompletedAttempt
from quiz_engine.models import StudyMode, StyleMode
from quiz_engine.principal import Principal
from quiz_engine.quota import QuotaExceeded, Tier, utcnow
from quiz_engine.session_state import SessionState


class QuizService:
    """One instance per request; the database session is request-scoped."""

    def __init__(
        self,
        db: DBSession,
        bank: QuestionBank,
        oracle: GradingOracle,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.bank = bank
        self.quota_store = SqlQuotaStore(db, clock=clock)
        self.engine = QuizEngine(
            bank=bank,
            oracle=oracle,
            progress=SqlProgressStore(db),
            quota_store=self.quota_store,
            snapshots=SqlSnapshotStore(db),
            history=SqlAttemptHistory(db),
            clock=clock,
        )

    def _question(self, state: SessionState) -> Optional[QuestionPayload]:
        index = state.current_index
        if index is None:
            return None
        return QuestionPayload(
            index=index,
            position=state.cursor,
            total=len(state.sequence),
            prompt=self.bank.get(state.edition, index).prompt,
        )

    def _session_response(self, state: SessionState, notice: Optional[str] = None) -> SessionResponse:
        policy = state.policy
        return SessionResponse(
            edition=state.edition,
            study_mode=state.study_mode.value,
            mode=state.mode.value,
            status=state.status.value,
            sequence=list(state.sequence),
            cursor=state.cursor,
            correct_count=state.correct_count,
            incorrect_count=state.incorrect_count,
            pass_threshold=policy.pass_threshold,
            fail_threshold=policy.fail_threshold,
            retry_pending=state.grading.awaiting_retry,
            current_question=self._question(state),
            notice=notice,
        )

    def start(self, principal: Principal, edition: str, study_mode: StudyMode, mode: StyleMode) -> SessionResponse:
        ctx = SessionContext(principal=principal)
        self.engine.start_session(ctx, edition, study_mode=study_mode, mode=mode)
        return self._session_response(ctx.session)

    def resume(self, principal: Principal) -> SessionResponse:
        ctx = SessionContext(principal=principal)
        result = self.engine.resume_session(ctx)
        return self._session_response(ctx.session, notice=result.notice)

    async def answer(self, principal: Principal, text: str) -> AnswerResponse:
        ctx = SessionContext(principal=principal)
        outcome = await self.engine.submit_answer(ctx, text)
        if isinstance(outcome, QuotaExceeded):
            return AnswerResponse(
                quota_exceeded=True,
                quota=QuotaExceededResponse(
                    reason=outcome.reason,
                    answered_today=outcome.answered_today,
                    limit=outcome.limit,
                    next_reset_at=outcome.next_reset_at,
                ),
            )

        state = ctx.session
        summary = None
        if outcome.focused_summary is not None:
            s = outcome.focused_summary
            summary = FocusedSummaryResponse(
                practiced=s.practiced,
                now_correct=s.now_correct,
                still_incorrect=s.still_incorrect,
                improvement_rate=s.improvement_rate,
            )
        return AnswerResponse(
            grade=outcome.grade.value,
            feedback=outcome.feedback,
            retry_allowed=outcome.retry_allowed,
            session_status=outcome.session_status.value,
            question_index=outcome.question_index,
            correct_count=state.correct_count,
            incorrect_count=state.incorrect_count,
            persisted=outcome.persisted,
            next_question=self._question(state),
            attempt_id=outcome.attempt.id if outcome.attempt is not None else None,
            focused_summary=summary,
        )

    def quota(self, principal: Principal) -> QuotaResponse:
        ctx = SessionContext(principal=principal)
        gate = self.engine.quota
        record = self.engine.quota_status(ctx)
        return QuotaResponse(
            tier=record.tier.value,
            answered_today=record.answered_today,
            limit=gate.daily_limit if record.tier is Tier.FREE else None,
            can_answer=gate.can_answer(record),
            reset_at=record.reset_at,
            next_reset_at=record.reset_at + gate.window if record.reset_at else None,
            premium_expires_at=record.premium_expires_at,
        )

    def progress(self, principal: Principal, edition: str) -> ProgressResponse:
        stats = self.engine.progress_stats(SessionContext(principal=principal), edition)
        return ProgressResponse(
            edition=stats.edition,
            total_questions=stats.total_questions,
            total_asked=stats.total_asked,
            total_correct=stats.total_correct,
            total_incorrect=stats.total_incorrect,
            incorrect_indices=stats.incorrect_indices,
            percentage_correct=round(stats.percentage_correct, 1),
            focused_available=stats.focused_available,
        )

    def reset_progress(self, principal: Principal, edition: str) -> None:
        self.engine.reset_progress(SessionContext(principal=principal), edition)

    def attempts(self, principal: Principal, limit: int = 50) -> AttemptListResponse:
        ctx = SessionContext(principal=principal)
        attempts = self.engine.list_attempts(ctx, limit=limit)
        best = {edition_id: self.engine.best_score(ctx, edition_id) for edition_id in EDITIONS}
        return AttemptListResponse(attempts=[_attempt_response(a) for a in attempts], best_scores=best)


def _attempt_response(attempt: CompletedAttempt) -> AttemptResponse:
    return AttemptResponse(
        id=attempt.id,
        edition=attempt.edition,
        mode=attempt.mode.value,
        study_mode=attempt.study_mode.value,
        status=attempt.status.value,
        correct_count=attempt.correct_count,
        incorrect_count=attempt.incorrect_count,
        total_asked=attempt.total_asked,
        completed_at=attempt.completed_at,
        results=[
            QuestionResultResponse(
                question_text=r.question_text,
                user_answer=r.user_answer,
                accepted_answer=r.accepted_answer,
                grade=r.grade.value,
                feedback=r.feedback,
            )
            for r in attempt.results
        ],
    )
