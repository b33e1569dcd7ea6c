"""Unit tests for best-effort result collection."""

from __future__ import annotations

import asyncio

import pytest

from quarry.templates.results import (
    Failure,
    Success,
    capture,
    failures,
    gather_results,
    successes,
)


async def _value(value: int, delay: float = 0) -> int:
    await asyncio.sleep(delay)
    return value


async def _boom(message: str) -> int:
    raise ValueError(message)


@pytest.mark.asyncio
async def test_capture_wraps_outcomes() -> None:
    """capture() turns return values and exceptions into results."""
    ok = await capture("a", _value(1))
    failed = await capture("b", _boom("nope"))

    assert ok == Success(source="a", value=1)
    assert isinstance(failed, Failure)
    assert failed.source == "b"
    assert str(failed.error) == "nope"


@pytest.mark.asyncio
async def test_gather_results_keeps_job_order() -> None:
    """Results follow job order, not completion order, and failures stay put."""
    results = await gather_results(
        [
            ("slow", _value(1, delay=0.01)),
            ("bad", _boom("x")),
            ("fast", _value(3)),
        ]
    )

    assert [result.source for result in results] == ["slow", "bad", "fast"]
    assert [s.value for s in successes(results)] == [1, 3]
    assert [f.source for f in failures(results)] == ["bad"]


@pytest.mark.asyncio
async def test_gather_results_empty() -> None:
    """No jobs means no results."""
    assert await gather_results([]) == []
