"""Quickstart job tests against real gateway processes."""

import asyncio
import socket

import pytest

from clawmgr.models.enums import JobStatus
from clawmgr.models.onboarding import GatewayProbe
from clawmgr.process.manager import GATEWAY_PROCESS_ID
from clawmgr.services.quickstart import describe_probe
from clawmgr.workers.queue import launch_job
from clawmgr.workers.quickstart_worker import QuickstartWorker

from conftest import failing, wait_for_terminal


def closed_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_gateway_exiting_immediately_fails_fast(worker_context, fake_runner):
    # The gateway definition runs the interpreter against a script that does not exist.
    payload = {"startGateway": True, "gatewayPort": closed_port()}
    job_id = launch_job(QuickstartWorker(worker_context), payload)
    job = await wait_for_terminal(worker_context.store, job_id, timeout=10)

    assert job.status == JobStatus.FAILED
    assert "gateway process exited" in job.error
    assert ["config", "set", "gateway.mode", "local"] in fake_runner.argv_calls()
    assert not worker_context.process_manager.get_snapshot(GATEWAY_PROCESS_ID).running


@pytest.mark.asyncio
async def test_cli_missing_is_a_precondition_failure(worker_context, fake_runner):
    worker_context.settings = worker_context.settings.model_copy(update={"cli_bin": "clawdbot-not-on-path"})
    job_id = launch_job(QuickstartWorker(worker_context), {})
    job = await wait_for_terminal(worker_context.store, job_id)

    assert job.error == "clawdbot CLI not installed"
    assert fake_runner.calls == []
    assert worker_context.process_manager.get_snapshot(GATEWAY_PROCESS_ID).pid is None


@pytest.mark.asyncio
async def test_without_start_reports_readiness_and_never_fails(worker_context):
    payload = {"startGateway": False, "gatewayPort": closed_port()}
    job_id = launch_job(QuickstartWorker(worker_context), payload)
    job = await wait_for_terminal(worker_context.store, job_id)

    assert job.status == JobStatus.SUCCESS
    assert job.result == {"gatewayReady": False, "probeOk": None}


@pytest.mark.asyncio
async def test_probe_retries_and_records_result(worker_context, fake_runner):
    fake_runner.responses[("channels", "status", "--probe")] = failing("discord unreachable")
    payload = {"startGateway": False, "runProbe": True, "gatewayPort": closed_port()}

    job_id = launch_job(QuickstartWorker(worker_context), payload)
    job = await wait_for_terminal(worker_context.store, job_id)

    assert job.result == {"gatewayReady": False, "probeOk": False}
    probes = [args for args in fake_runner.argv_calls() if args[:2] == ["channels", "status"]]
    assert len(probes) == worker_context.settings.probe_attempts
    assert worker_context.onboarding.last_probe.ok is False


@pytest.mark.asyncio
async def test_gateway_becomes_ready(worker_context, fake_runner, tmp_path):
    # The interpreter runs ./gateway as a script; keep it alive like a real gateway.
    (tmp_path / "gateway").write_text("import time\nprint('gateway up', flush=True)\ntime.sleep(30)\n")

    server = await asyncio.start_server(lambda reader, writer: writer.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        payload = {"startGateway": True, "runProbe": True, "gatewayPort": port}
        job_id = launch_job(QuickstartWorker(worker_context), payload)
        job = await wait_for_terminal(worker_context.store, job_id, timeout=10)
    finally:
        server.close()
        await server.wait_closed()

    assert job.status == JobStatus.SUCCESS, job.error
    assert job.result == {"gatewayReady": True, "probeOk": True}
    assert "Gateway ready." in job.logs
    snapshot = worker_context.process_manager.get_snapshot(GATEWAY_PROCESS_ID)
    assert snapshot.running
    assert f"--port {port}" in snapshot.command


def test_probe_description_keeps_zero_latency():
    fast = GatewayProbe(ok=True, host="127.0.0.1", port=18789, latency_ms=0)
    unknown = GatewayProbe(ok=False, host="127.0.0.1", port=18789, error="refused")
    assert describe_probe(fast) == "Gateway probe: ok=True error=none latency=0ms"
    assert describe_probe(unknown) == "Gateway probe: ok=False error=refused latency=n/ams"
