"""Concurrent fan-out with per-branch settled outcomes.

`gather_settled` issues every awaitable concurrently, waits until all have
finished, and reports each outcome separately. A failing branch never cancels
its siblings and never raises out of the gather; callers decide what a failed
branch means.
"""

import asyncio
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Settled:
    """Outcome of one fan-out branch.

    Exactly one of `value` / `error` is meaningful, selected by `ok`.
    """

    ok: bool
    value: Any = None
    error: BaseException | None = None


async def gather_settled(*awaitables) -> list[Settled]:
    """Await all inputs concurrently and return one `Settled` per input.

    Args:
        *awaitables: Coroutines or futures.

    Returns:
        Outcomes in input order.

    Edge cases:
        - No inputs returns an empty list.
        - `asyncio.CancelledError` of the enclosing task still propagates.
    """
    if not awaitables:
        return []

    outcomes = await asyncio.gather(*awaitables, return_exceptions=True)

    settled: list[Settled] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            settled.append(Settled(ok=False, error=outcome))
        else:
            settled.append(Settled(ok=True, value=outcome))
    return settled


def successes(settled: list[Settled]) -> list[Any]:
    """Return the values of successful branches, in input order."""
    return [item.value for item in settled if item.ok]
