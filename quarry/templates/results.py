"""Result values for best-effort fan-out over independent repositories.

Aggregation over many repositories must not stop at the first failure. Each
unit of work is captured as a :class:`Success` or :class:`Failure`; callers
decide what to keep with :func:`successes` and can log the rest from
:func:`failures`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dataclasses.dataclass(frozen=True, slots=True)
class Success[T]:
    """A unit of work that completed with ``value``."""

    source: str
    value: T


@dataclasses.dataclass(frozen=True, slots=True)
class Failure:
    """A unit of work that raised ``error``."""

    source: str
    error: Exception


type Result[T] = Success[T] | Failure


async def capture[T](source: str, work: cabc.Awaitable[T]) -> Result[T]:
    """Await ``work`` and wrap its outcome, converting exceptions to Failure."""
    try:
        value = await work
    except Exception as exc:  # noqa: BLE001 - failures are data here
        return Failure(source=source, error=exc)
    return Success(source=source, value=value)


async def gather_results[T](
    jobs: cabc.Iterable[tuple[str, cabc.Awaitable[T]]],
) -> list[Result[T]]:
    """Run ``(source, awaitable)`` jobs concurrently and collect every outcome.

    Results keep the order of ``jobs``. A failing job never cancels its
    siblings.
    """
    return list(
        await asyncio.gather(*(capture(source, work) for source, work in jobs))
    )


def successes[T](results: cabc.Iterable[Result[T]]) -> list[Success[T]]:
    """Return the successful results, discarding failures."""
    return [result for result in results if isinstance(result, Success)]


def failures[T](results: cabc.Iterable[Result[T]]) -> list[Failure]:
    """Return the failed results."""
    return [result for result in results if isinstance(result, Failure)]
