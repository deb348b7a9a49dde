"""Server-Sent Events bridge for one job: replay history, then follow live."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from clawmgr.jobs.store import JobStore
from clawmgr.models.enums import JobStatus
from clawmgr.models.job import DoneEvent, ErrorEvent, Job, JobEvent, LogEvent, StatusEvent

logger = logging.getLogger(__name__)

KEEPALIVE_FRAME = ": keep-alive\n\n"


def format_sse(event: str, data: dict[str, Any]) -> str:
    """Encode one SSE frame: ``event: <type>\\ndata: <json>\\n\\n``."""
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def _status_payload(event: StatusEvent) -> dict[str, Any]:
    payload = event.to_wire()
    payload.pop("type")
    return payload


def event_to_frame(event: JobEvent) -> tuple[str, bool]:
    """Map a store event to its wire frame. Returns ``(frame, is_terminal)``."""
    match event:
        case StatusEvent():
            return format_sse("status", _status_payload(event)), False
        case LogEvent():
            return format_sse("log", {"message": event.message}), False
        case DoneEvent():
            return format_sse("done", {"result": event.to_wire()["result"]}), True
        case ErrorEvent():
            return format_sse("error", {"error": event.error}), True
    raise TypeError(f"unsupported job event: {event!r}")


def _history_frames(job: Job) -> list[str]:
    status = StatusEvent(
        status=job.status,
        created_at=job.created_at,
        started_at=job.started_at,
        ended_at=job.ended_at,
    )
    frames = [format_sse("status", _status_payload(status))]
    frames.extend(format_sse("log", {"message": line}) for line in job.logs)
    return frames


class JobEventStream:
    """One consumer's view of a job as a sequence of SSE frames.

    The live subscription is registered in the same synchronous step that
    snapshots the history, so no event is skipped or duplicated. Closing the
    generator (client disconnect) removes the subscription; the job keeps
    running.
    """

    def __init__(
        self,
        store: JobStore,
        job_id: str,
        keepalive_seconds: float = 15.0,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> None:
        self._store = store
        self._job_id = job_id
        self._keepalive = keepalive_seconds
        self._is_disconnected = is_disconnected

    async def frames(self) -> AsyncGenerator[str, None]:
        job = self._store.get_job(self._job_id)
        if job is None:
            return

        queue: asyncio.Queue[JobEvent] = asyncio.Queue()
        unsubscribe = None
        if not job.status.is_terminal:
            unsubscribe = self._store.subscribe(self._job_id, queue.put_nowait)

        try:
            for frame in _history_frames(job):
                yield frame

            if job.status == JobStatus.SUCCESS:
                yield format_sse("done", {"result": job.model_dump(mode="json")["result"]})
                return
            if job.status == JobStatus.FAILED:
                yield format_sse("error", {"error": job.error or "failed"})
                return

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=self._keepalive)
                except asyncio.TimeoutError:
                    if self._is_disconnected is not None and await self._is_disconnected():
                        logger.debug("Job stream client gone (job=%s)", self._job_id)
                        return
                    yield KEEPALIVE_FRAME
                    continue

                frame, terminal = event_to_frame(event)
                yield frame
                if terminal:
                    return
        finally:
            if unsubscribe is not None:
                unsubscribe()
