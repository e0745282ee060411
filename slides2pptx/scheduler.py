"""
Bounded-concurrency scheduler for render jobs.

A fixed pool of asyncio workers pulls jobs from one shared cursor. A worker
starts the next unstarted job as soon as its current one finishes, so at most
``concurrency`` jobs are ever in flight and a slow job only ever holds its own
slot. Results land in a pre-sized list at each job's ``sequence_index``;
completion order has no effect on the returned order.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from .models import Job, RenderFailure, RenderResult

logger = logging.getLogger(__name__)

__all__ = ["run_bounded"]

Worker = Callable[[Job], Awaitable[RenderResult]]


def _check_indices(jobs: Sequence[Job]) -> None:
    seen = set()
    for job in jobs:
        index = job.sequence_index
        if not 0 <= index < len(jobs):
            raise ValueError(
                f"Job {job.slide_id} has sequence_index {index}, expected 0..{len(jobs) - 1}"
            )
        if index in seen:
            raise ValueError(f"Duplicate sequence_index {index} (job {job.slide_id})")
        seen.add(index)


async def run_bounded(jobs: Sequence[Job], concurrency: int, worker: Worker) -> List[RenderResult]:
    """
    Run ``worker`` over ``jobs`` with at most ``concurrency`` in flight.

    Args:
        jobs: Jobs in caller order; indices must be ``0..len(jobs) - 1``
        concurrency: Positive ceiling on simultaneous workers
        worker: Coroutine function returning a :class:`RenderResult`

    Returns:
        One result per job, ordered by ``sequence_index``
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    _check_indices(jobs)

    results: List[Optional[RenderResult]] = [None] * len(jobs)
    cursor = iter(jobs)

    async def drain(worker_id: int) -> None:
        # next() on the shared iterator never yields to the loop
        for job in cursor:
            logger.debug("Worker %d picked up %s", worker_id, job.slide_id)
            try:
                result = await worker(job)
            except Exception as e:
                logger.exception("❌ Worker crashed on %s", job.slide_id)
                result = RenderResult(job.sequence_index, job.slide_id, RenderFailure(str(e), 0))
            results[job.sequence_index] = result

    pool_size = min(concurrency, len(jobs))
    await asyncio.gather(*(drain(i) for i in range(pool_size)))
    return results
