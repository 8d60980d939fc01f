"""
Daily answer allowance.

Free accounts get FREE_DAILY_LIMIT graded answers per rolling window.
Premium accounts are unlimited only while premium_expires_at lies in the
future; a premium record with no expiry is not entitled (fail closed).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

FREE_DAILY_LIMIT = 5
RESET_WINDOW = timedelta(hours=24)


def utcnow() -> datetime:
    """Naive UTC, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


@dataclass
class QuotaRecord:
    tier: Tier = Tier.FREE
    answered_today: int = 0
    reset_at: Optional[datetime] = None
    premium_expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class QuotaExceeded:
    """Normal negative result of a quota check. Callers branch on it."""
    reason: str  # daily_limit | premium_expired
    answered_today: int
    limit: int
    next_reset_at: Optional[datetime]


class QuotaStore(ABC):
    """
    Defines the contract for quota storage, keyed by principal key.

    reset_if_elapsed and increment must be atomic at the storage layer, never
    a read-then-write from a possibly stale copy.
    """

    @abstractmethod
    def get(self, owner_key: str) -> QuotaRecord:
        raise NotImplementedError

    @abstractmethod
    def reset_if_elapsed(self, owner_key: str, now: datetime, window: timedelta) -> QuotaRecord:
        raise NotImplementedError

    @abstractmethod
    def increment(self, owner_key: str) -> QuotaRecord:
        raise NotImplementedError


class InMemoryQuotaStore(QuotaStore):
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._records: Dict[str, QuotaRecord] = {}
        self._clock = clock

    def _record(self, owner_key: str) -> QuotaRecord:
        if owner_key not in self._records:
            self._records[owner_key] = QuotaRecord(reset_at=self._clock())
        return self._records[owner_key]

    def get(self, owner_key: str) -> QuotaRecord:
        return replace(self._record(owner_key))

    def put(self, owner_key: str, record: QuotaRecord) -> None:
        self._records[owner_key] = replace(record)

    def reset_if_elapsed(self, owner_key: str, now: datetime, window: timedelta) -> QuotaRecord:
        record = self._record(owner_key)
        if record.reset_at is None or now - record.reset_at >= window:
            record.answered_today = 0
            record.reset_at = now
        return replace(record)

    def increment(self, owner_key: str) -> QuotaRecord:
        record = self._record(owner_key)
        record.answered_today += 1
        return replace(record)


class QuotaGate:
    def __init__(
        self,
        store: QuotaStore,
        daily_limit: int = FREE_DAILY_LIMIT,
        window: timedelta = RESET_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.daily_limit = daily_limit
        self.window = window
        self.clock = clock

    def can_answer(self, record: QuotaRecord, now: Optional[datetime] = None) -> bool:
        now = now or self.clock()
        if record.tier is Tier.PREMIUM:
            return record.premium_expires_at is not None and record.premium_expires_at > now
        return record.answered_today < self.daily_limit

    def check_and_reset(self, owner_key: str, now: Optional[datetime] = None) -> QuotaRecord:
        return self.store.reset_if_elapsed(owner_key, now or self.clock(), self.window)

    def check(self, owner_key: str) -> bool:
        now = self.clock()
        return self.can_answer(self.check_and_reset(owner_key, now), now)

    def admit(self, owner_key: str) -> Optional[QuotaExceeded]:
        """Reset the window if due, then check. Returns None when an answer may be graded."""
        now = self.clock()
        record = self.check_and_reset(owner_key, now)
        if self.can_answer(record, now):
            return None

        if record.tier is Tier.PREMIUM:
            if record.premium_expires_at is None:
                logger.error("premium record without expiry owner=%s; denying", owner_key)
            reason = "premium_expired"
        else:
            reason = "daily_limit"
        next_reset = record.reset_at + self.window if record.reset_at else None
        logger.info("quota exceeded owner=%s reason=%s answered=%d", owner_key, reason, record.answered_today)
        return QuotaExceeded(
            reason=reason,
            answered_today=record.answered_today,
            limit=self.daily_limit,
            next_reset_at=next_reset,
        )

    def increment(self, owner_key: str) -> QuotaRecord:
        return self.store.increment(owner_key)
