from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StartSessionRequest(BaseModel):
    edition: str
    study_mode: str = "random"
    mode: str = "formal"


class SubmitAnswerRequest(BaseModel):
    answer: str = Field(default="", max_length=2000)


class QuestionPayload(BaseModel):
    index: int  # canonical index in the edition's bank
    position: int  # 0-based position in the session sequence
    total: int
    prompt: str


class SessionResponse(BaseModel):
    edition: str
    study_mode: str
    mode: str
    status: str
    sequence: List[int]
    cursor: int
    correct_count: int
    incorrect_count: int
    pass_threshold: int
    fail_threshold: int
    retry_pending: bool = False
    current_question: Optional[QuestionPayload] = None
    notice: Optional[str] = None


class QuotaExceededResponse(BaseModel):
    reason: str
    answered_today: int
    limit: int
    next_reset_at: Optional[datetime] = None


class FocusedSummaryResponse(BaseModel):
    practiced: int
    now_correct: int
    still_incorrect: int
    improvement_rate: float


class AnswerResponse(BaseModel):
    quota_exceeded: bool = False
    quota: Optional[QuotaExceededResponse] = None
    grade: Optional[str] = None
    feedback: Optional[str] = None
    retry_allowed: bool = False
    session_status: Optional[str] = None
    question_index: Optional[int] = None
    correct_count: int = 0
    incorrect_count: int = 0
    persisted: bool = True
    next_question: Optional[QuestionPayload] = None
    attempt_id: Optional[str] = None
    focused_summary: Optional[FocusedSummaryResponse] = None


class QuotaResponse(BaseModel):
    tier: str
    answered_today: int
    limit: Optional[int] = None  # None for an entitled premium account
    can_answer: bool
    reset_at: Optional[datetime] = None
    next_reset_at: Optional[datetime] = None
    premium_expires_at: Optional[datetime] = None


class QuestionResultResponse(BaseModel):
    question_text: str
    user_answer: str
    accepted_answer: str
    grade: str
    feedback: str


class AttemptResponse(BaseModel):
    id: Optional[str] = None
    edition: str
    mode: str
    study_mode: str
    status: str
    correct_count: int
    incorrect_count: int
    total_asked: int
    completed_at: datetime
    results: List[QuestionResultResponse] = Field(default_factory=list)


class AttemptListResponse(BaseModel):
    attempts: List[AttemptResponse]
    best_scores: Dict[str, int] = Field(default_factory=dict)
