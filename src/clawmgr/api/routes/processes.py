"""Registered command process endpoints."""

from fastapi import APIRouter

from clawmgr.dependencies import Processes
from clawmgr.errors.exceptions import ValidationError
from clawmgr.models.process import ProcessResult
from clawmgr.models.requests import ProcessActionRequest

router = APIRouter(prefix="/processes", tags=["Processes"])


def _result_body(result: ProcessResult) -> dict:
    if not result.ok:
        raise ValidationError(result.error or "unknown id")
    return {"ok": True, "process": result.process.to_wire() if result.process else None}


@router.get("")
async def list_processes(processes: Processes) -> dict:
    return {"ok": True, "processes": [p.to_wire() for p in processes.list_processes()]}


@router.post("/start")
async def start_process(body: ProcessActionRequest, processes: Processes) -> dict:
    if not body.id:
        raise ValidationError("missing id")
    return _result_body(await processes.start_process(body.id))


@router.post("/stop")
async def stop_process(body: ProcessActionRequest, processes: Processes) -> dict:
    if not body.id:
        raise ValidationError("missing id")
    return _result_body(await processes.stop_process(body.id))
