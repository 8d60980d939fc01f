from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from quiz_api.bootstrap import get_grading_oracle, get_question_bank
from quiz_api.config import get_db
from quiz_api.schemas.progress_schemas import ProgressResponse, ResetProgressResponse
from quiz_api.schemas.quiz_schemas import (
    AnswerResponse,
    AttemptListResponse,
    QuotaResponse,
    SessionResponse,
    StartSessionRequest,
    SubmitAnswerRequest,
)
from quiz_api.services.quiz_service import QuizService
from quiz_api.utils.auth import get_principal
from quiz_api.utils.common import parse_edition, parse_study_mode, parse_style_mode
from quiz_api.utils.logger import configure_logging, log_request
from quiz_engine.editions import QuestionBank
from quiz_engine.errors import (
    GradingOracleFailure,
    InvalidAnswer,
    NoActiveSession,
    QuestionBankEmpty,
    QuizEngineError,
    RestorationFailed,
    SelectionExhausted,
    UnknownEdition,
)
from quiz_engine.grading import GradingOracle
from quiz_engine.principal import Principal

quiz_routes = APIRouter()
logger = configure_logging()


def get_quiz_service(
    db: Session = Depends(get_db),
    bank: QuestionBank = Depends(get_question_bank),
    oracle: GradingOracle = Depends(get_grading_oracle),
) -> QuizService:
    return QuizService(db, bank, oracle)


def _http_error(e: QuizEngineError) -> HTTPException:
    if isinstance(e, SelectionExhausted):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, GradingOracleFailure):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(e), "retryable": e.retryable},
        )
    if isinstance(e, NoActiveSession):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (UnknownEdition, InvalidAnswer)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, (QuestionBankEmpty, RestorationFailed)):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Quiz engine error")


@quiz_routes.post("/sessions")
def start_session(
    request: StartSessionRequest,
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> SessionResponse:
    """Start a new attempt, replacing any session in progress."""
    edition = parse_edition(request.edition)
    study_mode = parse_study_mode(request.study_mode)
    mode = parse_style_mode(request.mode)
    try:
        return service.start(principal, edition.id, study_mode, mode)
    except QuizEngineError as e:
        raise _http_error(e)


@quiz_routes.get("/sessions/current")
def resume_session(
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> SessionResponse:
    try:
        return service.resume(principal)
    except QuizEngineError as e:
        raise _http_error(e)


@quiz_routes.post("/sessions/current/answers")
async def submit_answer(
    request: SubmitAnswerRequest,
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> AnswerResponse:
    """Grade one answer. Running out of daily answers is reported in the body, not as an error."""
    try:
        with log_request(logger, f"submit answer owner={principal.key}"):
            return await service.answer(principal, request.answer)
    except QuizEngineError as e:
        raise _http_error(e)


@quiz_routes.get("/quota")
def get_quota(
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> QuotaResponse:
    return service.quota(principal)


@quiz_routes.get("/progress/{edition}")
def get_progress(
    edition: str,
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> ProgressResponse:
    return service.progress(principal, parse_edition(edition).id)


@quiz_routes.delete("/progress/{edition}")
def reset_progress(
    edition: str,
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> ResetProgressResponse:
    policy = parse_edition(edition)
    service.reset_progress(principal, policy.id)
    return ResetProgressResponse(message="Progress reset", edition=policy.id)


@quiz_routes.get("/attempts")
def list_attempts(
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(get_principal),
    service: QuizService = Depends(get_quiz_service),
) -> AttemptListResponse:
    """Finished attempts, newest first, with the best score per edition."""
    return service.attempts(principal, limit=limit)
