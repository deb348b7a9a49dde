"""Job launch: create the record and schedule its worker on the event loop."""

import asyncio
import logging

from clawmgr.workers.base import JobWorker

logger = logging.getLogger(__name__)

# Strong references so running job tasks are not garbage collected.
_running: set[asyncio.Task] = set()


def launch_job(worker: JobWorker, payload: dict | None = None) -> str:
    """Create a pending job, schedule ``worker.execute`` and return the job id.

    Must be called from a running event loop. The id is available before
    the worker has done anything.
    """
    job = worker.context.store.create_job(worker.label)
    task = asyncio.create_task(worker.execute(job.id, payload or {}), name=f"job:{worker.kind}:{job.id}")
    _running.add(task)
    task.add_done_callback(_running.discard)
    logger.debug("Launched job %s (kind=%s)", job.id, worker.kind)
    return job.id


async def cancel_running_jobs() -> None:
    """Cancel every in-flight job task and wait for them to unwind."""
    tasks = list(_running)
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
