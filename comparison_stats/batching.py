"""Bounded-concurrency execution in fixed-size worker groups."""

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split ``items`` into consecutive slices of at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [items[start : start + size] for start in range(0, len(items), size)]


async def run_in_groups(
    jobs: Sequence[Callable[[], Awaitable[T]]],
    *,
    group_size: int,
    pause: float = 0.0,
) -> list[T]:
    """Run jobs ``group_size`` at a time, awaiting each group before the next.

    At most ``group_size`` jobs are in flight at any moment. Results come back
    in job order regardless of completion order. The first exception raised by
    a job propagates and no later group is started.

    Args:
        jobs: Zero-argument callables returning awaitables; called lazily.
        group_size: Number of jobs started together.
        pause: Seconds to sleep between groups.

    Returns:
        list[T]: One result per job, in job order.
    """
    results: list[T] = []
    groups = chunked(jobs, group_size)

    for index, group in enumerate(groups):
        results.extend(await asyncio.gather(*(job() for job in group)))
        if pause and index < len(groups) - 1:
            await asyncio.sleep(pause)

    return results
