"""
Quiz session engine: question selection, per-question mastery, daily quota,
bounded-retry grading and resumable sessions.

Single import surface for the engine API.
"""

from quiz_engine.editions import EDITIONS, Edition, QuestionBank, get_edition
from quiz_engine.engine import AnswerOutcome, QuizEngine, ResumeResult, SessionContext
from quiz_engine.errors import (
    GradingOracleFailure,
    InvalidAnswer,
    NoActiveSession,
    PersistenceWriteFailure,
    QuestionBankEmpty,
    QuizEngineError,
    RestorationFailed,
    RestorationInvalid,
    SelectionExhausted,
    UnknownEdition,
)
from quiz_engine.grading import GradeResult, GradingOracle
from quiz_engine.models import Grade, Question, QuestionResult, SessionStatus, StudyMode, StyleMode
from quiz_engine.principal import Anonymous, Authenticated, Principal
from quiz_engine.quota import QuotaExceeded, QuotaRecord, Tier

__all__ = [
    "EDITIONS",
    "Edition",
    "QuestionBank",
    "get_edition",
    "AnswerOutcome",
    "QuizEngine",
    "ResumeResult",
    "SessionContext",
    "GradingOracleFailure",
    "InvalidAnswer",
    "NoActiveSession",
    "PersistenceWriteFailure",
    "QuestionBankEmpty",
    "QuizEngineError",
    "RestorationFailed",
    "RestorationInvalid",
    "SelectionExhausted",
    "UnknownEdition",
    "GradeResult",
    "GradingOracle",
    "Grade",
    "Question",
    "QuestionResult",
    "SessionStatus",
    "StudyMode",
    "StyleMode",
    "Anonymous",
    "Authenticated",
    "Principal",
    "QuotaExceeded",
    "QuotaRecord",
    "Tier",
]
