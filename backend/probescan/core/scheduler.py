import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from probescan.core.config import SCAN_CONCURRENCY

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int, int], None]


class ScanAborted(Exception):
    """The operator stopped the scan before every probe ran."""

    def __init__(self, completed: int, total: int):
        super().__init__(f"scan aborted after {completed} of {total} probes")
        self.completed = completed
        self.total = total


async def run_probe_pool(items: Sequence[T], run_one: Callable[[T], Awaitable[R]],
                         concurrency: int = SCAN_CONCURRENCY,
                         on_progress: Optional[ProgressCallback] = None,
                         abort: Optional[asyncio.Event] = None) -> List[R]:
    """
    Run ``run_one`` over ``items`` with at most ``concurrency`` calls in flight.

    Workers claim the next index from a shared counter and write their result
    into the slot of that index, so the output follows input order no matter
    which call finishes first. The counter is only touched between awaits on
    a single event loop, so a claim can never be taken twice.

    ``run_one`` is expected to turn its own failures into results; a failed
    result never stops the pool, but if it raises anyway the remaining
    workers are cancelled before the error propagates. Setting ``abort`` stops new claims, lets
    in-flight calls finish and raises ScanAborted.
    """
    total = len(items)
    results: List[Optional[R]] = [None] * total
    next_index = 0
    done = 0

    async def worker() -> None:
        nonlocal next_index, done
        while True:
            if abort is not None and abort.is_set():
                return
            index = next_index
            next_index += 1
            if index >= total:
                return

            results[index] = await run_one(items[index])
            done += 1
            if on_progress is not None:
                try:
                    on_progress(done, total)
                except Exception:
                    logger.warning("progress callback failed at %d/%d", done, total, exc_info=True)

    worker_count = min(max(concurrency, 1), total)
    tasks = [asyncio.ensure_future(worker()) for _ in range(worker_count)]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if done < total:
        raise ScanAborted(done, total)
    return results
