"""
Bounded worker pool for per-item pipeline work.

N workers drain a shared queue; a stop check is consulted before each
item is taken, so stopping lets in-flight items finish but starts no new
ones.
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


async def process_concurrently(
    items: Iterable[T],
    processor: Callable[[T], Awaitable[None]],
    concurrency: int = 5,
    on_progress: Optional[Callable[[int, int], None]] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> int:
    """
    Run ``processor`` over ``items`` with at most ``concurrency`` in flight.

    Items are started in input order. ``processor`` is expected to handle
    its own per-item errors; anything it raises propagates to the caller.

    Args:
        items: Work items
        processor: Async callable applied to each item
        concurrency: Number of workers (at least 1)
        on_progress: Called with (completed, total) after each item
        should_stop: Polled before each item; True drains the queue

    Returns:
        Number of items processed
    """
    queue = deque(items)
    total = len(queue)
    completed = 0

    async def worker() -> None:
        nonlocal completed
        while queue:
            if should_stop and should_stop():
                logger.info(f"Stop requested; skipping {len(queue)} queued item(s)")
                queue.clear()
                break
            item = queue.popleft()
            await processor(item)
            completed += 1
            if on_progress:
                on_progress(completed, total)

    workers = max(1, min(concurrency, total)) if total else 0
    await asyncio.gather(*(worker() for _ in range(workers)))
    return completed
