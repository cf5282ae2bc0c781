import pytest

from stock_monitor import config
from stock_monitor.utils import RateLimiter, get_http_session


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _limiter(interval=20, clock=None):
    clock = clock or FakeClock()
    return RateLimiter(interval, clock=clock, sleep=clock.sleep), clock


def test_first_acquire_is_immediate():
    limiter, clock = _limiter()
    limiter.acquire()
    assert clock.sleeps == []


def test_second_acquire_waits_full_interval():
    limiter, clock = _limiter()
    limiter.acquire()
    limiter.acquire()
    assert clock.sleeps == [pytest.approx(20.0)]
    assert clock.now == pytest.approx(120.0)


def test_partial_refill_waits_remainder():
    limiter, clock = _limiter()
    limiter.acquire()
    clock.now += 5
    limiter.acquire()
    assert sum(clock.sleeps) == pytest.approx(15.0)


def test_capacity_is_one_token():
    limiter, clock = _limiter()
    limiter.acquire()
    # a long idle period still only banks a single token
    clock.now += 500
    limiter.acquire()
    limiter.acquire()
    assert sum(clock.sleeps) == pytest.approx(20.0)


def test_cadence_over_many_polls():
    limiter, clock = _limiter(interval=20)
    start = clock.now
    for _ in range(6):
        limiter.acquire()
    assert clock.now - start == pytest.approx(100.0)


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        RateLimiter(0)


def test_session_identifies_itself():
    session = get_http_session()
    try:
        assert session.headers["User-Agent"] == config.USER_AGENT
        assert "application/json" in session.headers["Accept"]
    finally:
        session.close()


def test_session_user_agent_override():
    session = get_http_session("custom/1.0")
    try:
        assert session.headers["User-Agent"] == "custom/1.0"
    finally:
        session.close()
