"""Shared concurrency primitives for the fan-out stages of a search.

Two patterns are exposed:

1. **settle_all** -- A settle-all join.  Every branch runs to completion
   independently; a branch that raises is recorded as a failed
   :class:`Settled` entry instead of cancelling or delaying the others.
   Callers get one record per branch and can report "N of M sources
   failed" without special cases.

2. **gather_with_deadline** -- The same per-branch records, but the whole
   batch is bounded by one soft deadline.  Branches still running when it
   expires are cancelled and reported as ``timed_out``; callers treat them
   as "no data", never as an error.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Generic, Mapping, TypeVar

import structlog

from unstream.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass(frozen=True)
class Settled(Generic[_T]):
    """Outcome of one branch of a settle-all join.

    Attributes
    ----------
    label:
        Name of the branch, usually the source id.
    value:
        The branch's return value when it succeeded.
    error:
        The exception raised by the branch, if any.
    elapsed:
        Wall-clock seconds the branch ran for.
    timed_out:
        True when the branch was abandoned at a deadline.
    """

    label: str
    value: _T | None = None
    error: BaseException | None = None
    elapsed: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.timed_out

    def value_or(self, default: _T) -> _T:
        """Return the value when the branch succeeded, else *default*."""
        if self.ok and self.value is not None:
            return self.value
        return default


async def _run_branch(label: str, awaitable: Awaitable[_T]) -> Settled[_T]:
    start = time.perf_counter()
    try:
        value = await awaitable
    except Exception as exc:
        return Settled(label=label, error=exc, elapsed=time.perf_counter() - start)
    return Settled(label=label, value=value, elapsed=time.perf_counter() - start)


async def settle_all(
    branches: Mapping[str, Awaitable[_T]],
    logger: structlog.BoundLogger | None = None,
) -> dict[str, Settled[_T]]:
    """Run every branch concurrently and collect each outcome independently.

    Parameters
    ----------
    branches:
        Awaitables keyed by a branch label.
    logger:
        Optional structured logger for warnings on failed branches.

    Returns
    -------
    dict[str, Settled]
        One record per label, in the input order.
    """
    log = logger or _logger
    labels = list(branches)
    outcomes = await asyncio.gather(
        *(_run_branch(label, branches[label]) for label in labels)
    )
    settled = dict(zip(labels, outcomes))

    failed = [s for s in outcomes if not s.ok]
    for outcome in failed:
        log.warning(
            "branch_failed",
            branch=outcome.label,
            error=str(outcome.error),
            elapsed=round(outcome.elapsed, 3),
        )
    log.debug("settle_all_complete", branches=len(labels), failed=len(failed))
    return settled


async def gather_with_deadline(
    branches: Mapping[str, Awaitable[_T]],
    deadline: float,
    logger: structlog.BoundLogger | None = None,
) -> dict[str, Settled[_T]]:
    """Like :func:`settle_all`, but abandon branches still running after *deadline* seconds."""
    log = logger or _logger
    start = time.perf_counter()
    tasks = {
        label: asyncio.ensure_future(_run_branch(label, awaitable))
        for label, awaitable in branches.items()
    }
    if not tasks:
        return {}

    _, pending = await asyncio.wait(tasks.values(), timeout=deadline)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    settled: dict[str, Settled[_T]] = {}
    abandoned = 0
    for label, task in tasks.items():
        if task in pending:
            abandoned += 1
            settled[label] = Settled(
                label=label,
                elapsed=time.perf_counter() - start,
                timed_out=True,
            )
        else:
            settled[label] = task.result()

    if abandoned:
        log.info("deadline_abandoned_branches", abandoned=abandoned, total=len(tasks), deadline=deadline)
    return settled
