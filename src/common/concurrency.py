"""Bounded-concurrency execution of independent async jobs.

Used for both the per-package tester phases and the registry fan-out of the
version resolver. Workers are coroutines; at most ``max_concurrency`` of them
are awaited at once and the next item starts as soon as one finishes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar, Union, cast

from config import default_concurrency

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Outcome(Generic[R]):
    """Result of one worker invocation: a value or the exception it raised."""

    value: Optional[R] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[R]:
        if self.error is not None:
            raise self.error
        return self.value


def _check_concurrency(max_concurrency: Optional[int]) -> int:
    if max_concurrency is None:
        return default_concurrency()
    if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int):
        raise TypeError(f"max_concurrency must be an int, got {type(max_concurrency).__name__}")
    if max_concurrency <= 0:
        raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
    return max_concurrency


async def n_at_a_time(
    max_concurrency: Optional[int],
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    fail_fast: bool = False,
) -> Union[List[Outcome[R]], List[R]]:
    """Run ``worker`` over ``items`` with at most ``max_concurrency`` in flight.

    Args:
        max_concurrency: Worker ceiling; None means one per CPU.
        items: Inputs, one worker invocation each.
        worker: Coroutine function applied to every item.
        fail_fast: If False (default) every item runs and the result is a list
            of :class:`Outcome`. If True the result is a plain list of values,
            and the first exception cancels outstanding work and is re-raised.

    Returns:
        Results in the order of ``items``, regardless of completion order.

    Raises:
        ValueError: If ``max_concurrency`` is zero or negative.
    """
    limit = _check_concurrency(max_concurrency)
    pending = list(items)
    slots: List[Optional[Outcome[R]]] = [None] * len(pending)
    next_index = 0

    async def run_queue() -> None:
        nonlocal next_index
        while next_index < len(pending):
            index = next_index
            next_index += 1
            try:
                value = await worker(pending[index])
            except Exception as exc:  # pylint: disable=broad-exception-caught
                if fail_fast:
                    raise
                slots[index] = Outcome(error=exc)
            else:
                slots[index] = Outcome(value=value)

    tasks = [asyncio.ensure_future(run_queue()) for _ in range(min(limit, len(pending)))]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    # gather returned without raising, so every slot is filled.
    outcomes = cast(List[Outcome[R]], slots)
    if fail_fast:
        return [outcome.value for outcome in outcomes]  # type: ignore[misc]
    return outcomes


class ConcurrencyLimiter:
    """Holds a concurrency ceiling and runs batches under it."""

    def __init__(self, max_concurrency: Optional[int] = None):
        self.max_concurrency = _check_concurrency(max_concurrency)

    async def run(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[R]],
        *,
        fail_fast: bool = False,
    ) -> Union[List[Outcome[R]], List[R]]:
        """See :func:`n_at_a_time`."""
        return await n_at_a_time(self.max_concurrency, items, worker, fail_fast=fail_fast)
