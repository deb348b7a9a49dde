"""Base worker interface for in-process job execution."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from clawmgr.config import Settings
from clawmgr.jobs.store import JobStore
from clawmgr.logging_config import bind_job_context
from clawmgr.process.manager import ProcessManager
from clawmgr.process.runner import CommandRunner, LogSink
from clawmgr.services.onboarding import OnboardingStatusService

logger = logging.getLogger(__name__)


@dataclass
class WorkerContext:
    """Collaborators shared by every job worker."""

    store: JobStore
    runner: CommandRunner
    process_manager: ProcessManager
    onboarding: OnboardingStatusService
    settings: Settings
    http_client: httpx.AsyncClient | None = None


class JobWorker(ABC):
    """Abstract base class for job workers.

    Subclasses implement :meth:`process`; :meth:`execute` owns the job
    lifecycle and never lets an exception escape.
    """

    kind: str = ""
    label: str = ""
    failure_prefix: str = "Job failed"
    invalidates_onboarding: bool = False

    def __init__(self, context: WorkerContext) -> None:
        self.context = context

    @abstractmethod
    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        """Run the job and return its result document."""
        ...

    async def execute(self, job_id: str, payload: dict) -> None:
        """Execute the full job lifecycle: running -> process -> success/failed."""
        store = self.context.store
        bind_job_context(job_id, self.kind)
        log = store.log_sink(job_id)
        store.start_job(job_id)

        try:
            result = await self.process(job_id, payload or {}, log)
        except asyncio.CancelledError:
            store.fail_job(job_id, "cancelled")
            raise
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            log(f"{self.failure_prefix}: {message}")
            logger.warning("Job %s failed (kind=%s): %s", job_id, self.kind, message)
            store.fail_job(job_id, message)
        else:
            store.complete_job(job_id, result)
            logger.info("Job %s succeeded (kind=%s)", job_id, self.kind)
        finally:
            if self.invalidates_onboarding:
                self.context.onboarding.invalidate()
