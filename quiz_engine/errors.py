"""
Engine error taxonomy.

QuotaExceeded is deliberately absent: running out of daily answers is an
expected result (see quiz_engine.quota.QuotaExceeded), not an exception.
"""

from typing import Iterable, Optional


class QuizEngineError(Exception):
    """Base class for all engine errors."""


class UnknownEdition(QuizEngineError, ValueError):
    def __init__(self, edition: str):
        super().__init__(f"Unknown edition: {edition!r}")
        self.edition = edition


class InvalidAnswer(QuizEngineError, ValueError):
    """Raised for blank submissions; nothing is graded or counted."""


class InvalidTransition(QuizEngineError):
    """A session operation was attempted from a status that does not allow it."""


class NoActiveSession(QuizEngineError):
    """There is no in-progress session to answer or resume."""


class SelectionExhausted(QuizEngineError):
    """Focused mode was requested but no previously-missed questions exist."""

    def __init__(self, edition: str):
        super().__init__(f"No incorrect questions to review for edition {edition}")
        self.edition = edition


class QuestionBankEmpty(QuizEngineError):
    def __init__(self, edition: str):
        super().__init__(f"Question bank for edition {edition} is empty")
        self.edition = edition


class RestorationInvalid(QuizEngineError):
    """Saved indices fall outside the current canonical range. Logged, then recovered."""

    def __init__(self, edition: str, invalid_indices: Iterable[object], canonical_size: int):
        self.edition = edition
        self.invalid_indices = list(invalid_indices)
        self.canonical_size = canonical_size
        super().__init__(
            f"Saved session for edition {edition} references {len(self.invalid_indices)} "
            f"index(es) outside 0..{canonical_size - 1}"
        )


class RestorationFailed(QuizEngineError):
    """Every step of the restore fallback chain came up empty."""


class GradingOracleFailure(QuizEngineError):
    """The grading oracle could not produce a grade. Always safe to retry."""

    retryable = True

    def __init__(self, message: str = "Grading service unavailable", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class PersistenceWriteFailure(QuizEngineError):
    """A session snapshot could not be written; the in-memory session keeps going."""
