"""Pydantic models for Job records and the job event union."""

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import Field

from clawmgr.models.common import CamelModel
from clawmgr.models.enums import JobStatus


class Job(CamelModel):
    id: str
    label: str
    status: JobStatus = JobStatus.PENDING
    logs: list[str] = Field(default_factory=list)
    result: Any = None
    error: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None


class StatusEvent(CamelModel):
    type: Literal["status"] = "status"
    status: JobStatus
    created_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class LogEvent(CamelModel):
    type: Literal["log"] = "log"
    message: str


class DoneEvent(CamelModel):
    type: Literal["done"] = "done"
    result: Any = None


class ErrorEvent(CamelModel):
    type: Literal["error"] = "error"
    error: str


JobEvent = Annotated[
    StatusEvent | LogEvent | DoneEvent | ErrorEvent,
    Field(discriminator="type"),
]


class JobCreatedResponse(CamelModel):
    ok: bool = True
    job_id: str
