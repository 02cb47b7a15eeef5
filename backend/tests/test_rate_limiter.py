"""Tests for the fixed-window login limiter"""
from datetime import datetime, timedelta

import pytest

from portfolio_admin.services.rate_limiter import LoginRateLimiter

WINDOW = timedelta(minutes=15)
T0 = datetime(2026, 3, 1, 12, 0, 0)


def test_admits_five_then_rejects_sixth():
    limiter = LoginRateLimiter()

    results = [limiter.check("1.2.3.4", 5, WINDOW, now=T0 + timedelta(minutes=i)) for i in range(6)]

    assert [r.allowed for r in results] == [True, True, True, True, True, False]
    assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]
    assert results[5].reset_at == T0 + WINDOW


def test_rejection_does_not_extend_window():
    limiter = LoginRateLimiter()
    for _ in range(5):
        limiter.check("ip", 5, WINDOW, now=T0)

    for minutes in (1, 10, 14):
        result = limiter.check("ip", 5, WINDOW, now=T0 + timedelta(minutes=minutes))
        assert result.allowed is False
        assert result.reset_at == T0 + WINDOW

    assert limiter.get("ip").attempts == 5


def test_window_resets_after_expiry():
    limiter = LoginRateLimiter()
    for _ in range(6):
        limiter.check("ip", 5, WINDOW, now=T0)

    result = limiter.check("ip", 5, WINDOW, now=T0 + WINDOW)
    assert result.allowed is True
    assert result.remaining == 4
    assert result.reset_at == T0 + 2 * WINDOW


def test_identities_are_independent():
    limiter = LoginRateLimiter()
    for _ in range(5):
        limiter.check("a", 5, WINDOW, now=T0)

    assert limiter.check("a", 5, WINDOW, now=T0).allowed is False
    assert limiter.check("b", 5, WINDOW, now=T0).allowed is True
    assert len(limiter) == 2


def test_uses_injected_clock():
    now = {"value": T0}
    limiter = LoginRateLimiter(clock=lambda: now["value"])

    limiter.check("ip", 1, WINDOW)
    assert limiter.check("ip", 1, WINDOW).allowed is False

    now["value"] = T0 + WINDOW
    assert limiter.check("ip", 1, WINDOW).allowed is True


def test_rejects_invalid_budget():
    with pytest.raises(ValueError):
        LoginRateLimiter().check("ip", 0, WINDOW, now=T0)
