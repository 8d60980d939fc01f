"""
API data models. Single import surface for DB entities.

DB entities (quiz_api.models.models):
- Account, QuestionProgress, QuotaRecordRow, CompletedAttemptRow

Session snapshots (quiz_api.models.session):
- QuizSessionSnapshot
"""

from quiz_api.models.models import (
    Account,
    QuestionProgress,
    QuotaRecordRow,
    CompletedAttemptRow,
)
from quiz_api.models.session import QuizSessionSnapshot

__all__ = [
    "Account",
    "QuestionProgress",
    "QuotaRecordRow",
    "CompletedAttemptRow",
    "QuizSessionSnapshot",
]
