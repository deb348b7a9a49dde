"""Job creation, polling and SSE streaming endpoints."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from clawmgr.config import settings
from clawmgr.dependencies import Store, Workers
from clawmgr.errors.exceptions import NotFoundError, ValidationError
from clawmgr.jobs.stream import JobEventStream
from clawmgr.models.job import JobCreatedResponse
from clawmgr.models.requests import (
    AiAuthRequest,
    DownloadRequest,
    PairingRequest,
    PairingWaitRequest,
    SkillsRequest,
)
from clawmgr.services.quickstart import QuickstartRequest
from clawmgr.workers.base import WorkerContext
from clawmgr.workers.queue import launch_job
from clawmgr.workers.registry import get_worker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _launch(context: WorkerContext, kind: str, payload: dict | None = None) -> dict:
    worker = get_worker(kind, context)
    if worker is None:
        raise NotFoundError("Job kind", kind)
    job_id = launch_job(worker, payload)
    return JobCreatedResponse(job_id=job_id).to_wire()


@router.post("/cli-install")
async def create_cli_install_job(context: Workers) -> dict:
    return _launch(context, "cli_install")


@router.post("/quickstart")
async def create_quickstart_job(context: Workers, body: QuickstartRequest | None = None) -> dict:
    return _launch(context, "quickstart", (body or QuickstartRequest()).model_dump())


@router.post("/discord/pairing")
async def create_pairing_job(body: PairingRequest, context: Workers) -> dict:
    if not body.code:
        raise ValidationError("missing code")
    return _launch(context, "discord_pairing", body.model_dump())


@router.post("/discord/pairing/wait")
async def create_pairing_wait_job(context: Workers, body: PairingWaitRequest | None = None) -> dict:
    return _launch(context, "discord_pairing_wait", (body or PairingWaitRequest()).model_dump())


@router.post("/resources/download")
async def create_download_job(context: Workers, body: DownloadRequest | None = None) -> dict:
    return _launch(context, "resource_download", (body or DownloadRequest()).model_dump())


@router.post("/ai/auth")
async def create_ai_auth_job(body: AiAuthRequest, context: Workers) -> dict:
    if not body.provider.strip():
        raise ValidationError("missing provider")
    if not body.api_key.strip():
        raise ValidationError("missing apiKey")
    return _launch(context, "ai_auth", body.model_dump())


@router.post("/crypto/install-skills")
async def create_skills_job(context: Workers, body: SkillsRequest | None = None) -> dict:
    return _launch(context, "crypto_skills", (body or SkillsRequest()).model_dump())


@router.get("/{job_id}")
async def get_job(job_id: str, store: Store) -> dict:
    job = store.get_job(job_id)
    if job is None:
        raise NotFoundError()
    return {"ok": True, "job": job.to_wire()}


@router.get("/{job_id}/stream")
async def stream_job(job_id: str, request: Request, store: Store):
    """Replay the job's history, then follow it live until it finishes."""
    if store.get_job(job_id) is None:
        raise NotFoundError()

    stream = JobEventStream(
        store,
        job_id,
        keepalive_seconds=settings.stream_keepalive_seconds,
        is_disconnected=request.is_disconnected,
    )
    return StreamingResponse(
        stream.frames(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
