"""Unit tests for QuotaGate over the in-memory store."""
from datetime import timedelta

import pytest

from quiz_engine.quota import FREE_DAILY_LIMIT, InMemoryQuotaStore, QuotaGate, QuotaRecord, Tier


@pytest.fixture
def store(clock):
    return InMemoryQuotaStore(clock=clock)


@pytest.fixture
def gate(store, clock):
    return QuotaGate(store, clock=clock)


@pytest.mark.unit
class TestFreeTier:
    def test_five_answers_then_blocked(self, gate):
        for _ in range(FREE_DAILY_LIMIT):
            assert gate.admit("account:1") is None
            gate.increment("account:1")
        exceeded = gate.admit("account:1")
        assert exceeded is not None
        assert exceeded.reason == "daily_limit"
        assert exceeded.answered_today == FREE_DAILY_LIMIT
        assert gate.check("account:1") is False

    def test_window_reset(self, gate, store, clock):
        for _ in range(FREE_DAILY_LIMIT):
            gate.increment("account:1")
        clock.advance(timedelta(hours=24))
        assert gate.admit("account:1") is None
        assert gate.increment("account:1").answered_today == 1
        assert store.get("account:1").reset_at == clock.now

    def test_no_reset_inside_window(self, gate, clock):
        for _ in range(FREE_DAILY_LIMIT):
            gate.increment("account:1")
        clock.advance(timedelta(hours=23, minutes=59))
        assert gate.check("account:1") is False

    def test_next_reset_reported(self, gate, clock):
        start = clock.now
        for _ in range(FREE_DAILY_LIMIT):
            gate.increment("guest:x")
        assert gate.admit("guest:x").next_reset_at == start + timedelta(hours=24)

    def test_owners_are_independent(self, gate):
        for _ in range(FREE_DAILY_LIMIT):
            gate.increment("account:1")
        assert gate.check("account:2") is True


@pytest.mark.unit
class TestPremium:
    def test_active_premium_is_unlimited(self, gate, store, clock):
        store.put("account:1", QuotaRecord(tier=Tier.PREMIUM, answered_today=50, reset_at=clock.now,
                                           premium_expires_at=clock.now + timedelta(days=30)))
        assert gate.admit("account:1") is None

    def test_expired_premium_is_denied(self, gate, store, clock):
        store.put("account:1", QuotaRecord(tier=Tier.PREMIUM, reset_at=clock.now,
                                           premium_expires_at=clock.now - timedelta(seconds=1)))
        assert gate.admit("account:1").reason == "premium_expired"

    def test_premium_without_expiry_fails_closed(self, gate, store, clock):
        store.put("account:1", QuotaRecord(tier=Tier.PREMIUM, reset_at=clock.now, premium_expires_at=None))
        assert gate.check("account:1") is False
