"""Tests for circuit breaker module."""

import logging

import pytest

from contact_enrichment.core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerOpen,
    CircuitState,
)

from conftest import FakeClock


def _opened(clock: FakeClock, threshold: int = 5) -> CircuitBreaker:
    cb = CircuitBreaker("llm", failure_threshold=threshold, recovery_timeout=30, clock=clock)
    for _ in range(threshold):
        cb.record_failure()
    return cb


def test_circuit_starts_closed() -> None:
    cb = CircuitBreaker("llm")
    assert cb.state == CircuitState.CLOSED


def test_circuit_stays_closed_under_threshold() -> None:
    cb = CircuitBreaker("llm", failure_threshold=5)
    for _ in range(4):
        cb.record_failure()
    assert cb.state == CircuitState.CLOSED


def test_circuit_opens_after_threshold_failures(clock: FakeClock) -> None:
    cb = _opened(clock)
    assert cb.state == CircuitState.OPEN


async def test_open_circuit_refuses_calls(clock: FakeClock) -> None:
    cb = _opened(clock)
    calls = 0

    async def ok() -> str:
        nonlocal calls
        calls += 1
        return "ok"

    with pytest.raises(CircuitBreakerOpen, match="llm"):
        await cb.call(ok)
    assert calls == 0


async def test_circuit_half_opens_after_recovery_timeout(clock: FakeClock) -> None:
    cb = _opened(clock)

    async def ok() -> str:
        return "ok"

    clock.advance(29)
    assert cb.state == CircuitState.OPEN
    clock.advance(1)
    assert cb.state == CircuitState.HALF_OPEN
    assert await cb.call(ok) == "ok"
    assert cb.state == CircuitState.CLOSED


def test_half_open_circuit_closes_on_success(clock: FakeClock) -> None:
    cb = _opened(clock)
    clock.advance(30)
    assert cb.state == CircuitState.HALF_OPEN

    cb.record_success()

    assert cb.state == CircuitState.CLOSED


def test_half_open_circuit_reopens_on_single_failure(clock: FakeClock) -> None:
    cb = _opened(clock)
    clock.advance(30)
    assert cb.state == CircuitState.HALF_OPEN

    cb.record_failure()

    assert cb.state == CircuitState.OPEN
    clock.advance(29)
    assert cb.state == CircuitState.OPEN


def test_success_resets_failures() -> None:
    cb = CircuitBreaker("llm", failure_threshold=5)
    for _ in range(3):
        cb.record_failure()
    cb.record_success()
    assert cb._failures == 0


async def test_call_success() -> None:
    cb = CircuitBreaker("llm")

    async def ok() -> str:
        return "ok"

    result = await cb.call(ok)
    assert result == "ok"
    assert cb._failures == 0


async def test_call_passes_keyword_arguments() -> None:
    cb = CircuitBreaker("llm")

    async def echo(value: str, suffix: str = "") -> str:
        return value + suffix

    assert await cb.call(echo, value="a", suffix="b") == "ab"


async def test_call_failure_increments_count() -> None:
    cb = CircuitBreaker("llm")

    async def fail() -> str:
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        await cb.call(fail)
    assert cb._failures == 1


async def test_call_open_circuit_raises_immediately() -> None:
    cb = CircuitBreaker("llm", failure_threshold=2)
    calls = 0

    async def fail() -> str:
        nonlocal calls
        calls += 1
        raise ConnectionError("down")

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await cb.call(fail)

    with pytest.raises(CircuitBreakerOpen):
        await cb.call(fail)
    assert calls == 2


def test_state_change_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    cb = CircuitBreaker("llm", failure_threshold=2)
    with caplog.at_level(logging.WARNING, logger="contact_enrichment.core.circuit_breaker"):
        cb.record_failure()
        cb.record_failure()
    assert any("OPEN" in record.message and "llm" in record.message for record in caplog.records)
