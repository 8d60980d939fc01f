"""
API schemas package. Import from submodules or from this package.

Example:
    from quiz_api.schemas import SessionResponse, AnswerResponse
    from quiz_api.schemas.quiz_schemas import SessionResponse
"""

from quiz_api.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
)
from quiz_api.schemas.user_schemas import User
from quiz_api.schemas.quiz_schemas import (
    StartSessionRequest,
    SubmitAnswerRequest,
    QuestionPayload,
    SessionResponse,
    QuotaExceededResponse,
    FocusedSummaryResponse,
    AnswerResponse,
    QuotaResponse,
    QuestionResultResponse,
    AttemptResponse,
    AttemptListResponse,
)
from quiz_api.schemas.progress_schemas import ProgressResponse, ResetProgressResponse

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    # user
    "User",
    # quiz
    "StartSessionRequest",
    "SubmitAnswerRequest",
    "QuestionPayload",
    "SessionResponse",
    "QuotaExceededResponse",
    "FocusedSummaryResponse",
    "AnswerResponse",
    "QuotaResponse",
    "QuestionResultResponse",
    "AttemptResponse",
    "AttemptListResponse",
    # progress
    "ProgressResponse",
    "ResetProgressResponse",
]
