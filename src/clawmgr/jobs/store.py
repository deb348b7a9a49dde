"""In-memory registry of asynchronous jobs with per-job event broadcast."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from clawmgr.models.enums import JobStatus
from clawmgr.models.job import DoneEvent, ErrorEvent, Job, JobEvent, LogEvent, StatusEvent

logger = logging.getLogger(__name__)

JobListener = Callable[[JobEvent], None]
Unsubscribe = Callable[[], None]

DEFAULT_RETENTION = 200


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_job_id() -> str:
    return f"job_{uuid.uuid4().hex[:16]}"


class JobStore:
    """Owns every Job record and its subscriber list.

    Lifecycle: ``pending -> running -> success | failed``. Mutators on unknown
    ids are no-ops. Once a job is terminal its record is frozen and its
    listeners are dropped.

    Retention keeps at most ``retention`` jobs; when exceeded the oldest
    terminal jobs are evicted. Pending and running jobs are never evicted.
    """

    def __init__(self, retention: int = DEFAULT_RETENTION) -> None:
        self._retention = max(1, retention)
        self._jobs: dict[str, Job] = {}
        self._listeners: dict[str, list[JobListener]] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def create_job(self, label: str) -> Job:
        job = Job(id=_new_job_id(), label=label, created_at=_now())
        self._jobs[job.id] = job
        self._listeners[job.id] = []
        self._evict()
        logger.debug("Job created id=%s label=%s", job.id, label)
        return job.model_copy(deep=True)

    def get_job(self, job_id: str) -> Job | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    def start_job(self, job_id: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status != JobStatus.PENDING:
            return
        job.status = JobStatus.RUNNING
        job.started_at = _now()
        self._emit(job_id, StatusEvent(status=job.status, created_at=job.created_at, started_at=job.started_at))

    def append_log(self, job_id: str, line: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status.is_terminal:
            return
        job.logs.append(line)
        self._emit(job_id, LogEvent(message=line))

    def complete_job(self, job_id: str, result: Any = None) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status.is_terminal:
            return
        self.start_job(job_id)
        job.status = JobStatus.SUCCESS
        job.result = result
        job.ended_at = _now()
        self._emit(job_id, DoneEvent(result=result))
        self._close(job_id)

    def fail_job(self, job_id: str, error: str) -> None:
        job = self._jobs.get(job_id)
        if job is None or job.status.is_terminal:
            return
        self.start_job(job_id)
        job.status = JobStatus.FAILED
        job.error = error
        job.ended_at = _now()
        self._emit(job_id, ErrorEvent(error=error))
        self._close(job_id)

    def subscribe(self, job_id: str, listener: JobListener) -> Unsubscribe:
        """Register ``listener`` for future events of ``job_id``.

        Subscribing to an unknown or terminal job registers nothing; the
        returned callable is always safe to invoke, any number of times.
        """
        listeners = self._listeners.get(job_id)
        job = self._jobs.get(job_id)
        if listeners is None or job is None or job.status.is_terminal:
            return lambda: None
        listeners.append(listener)

        def unsubscribe() -> None:
            current = self._listeners.get(job_id)
            if current and listener in current:
                current.remove(listener)

        return unsubscribe

    def subscriber_count(self, job_id: str) -> int:
        return len(self._listeners.get(job_id, ()))

    def log_sink(self, job_id: str) -> Callable[[str], None]:
        """Adapt append-and-broadcast to the plain ``LogSink`` shape."""
        return lambda line: self.append_log(job_id, line)

    def _emit(self, job_id: str, event: JobEvent) -> None:
        for listener in list(self._listeners.get(job_id, ())):
            try:
                listener(event)
            except Exception:
                logger.exception("Job listener failed, dropping it (job=%s)", job_id)
                current = self._listeners.get(job_id)
                if current and listener in current:
                    current.remove(listener)

    def _close(self, job_id: str) -> None:
        self._listeners[job_id] = []

    def _evict(self) -> None:
        overflow = len(self._jobs) - self._retention
        if overflow <= 0:
            return
        for job_id in [jid for jid, job in self._jobs.items() if job.status.is_terminal][:overflow]:
            del self._jobs[job_id]
            self._listeners.pop(job_id, None)
