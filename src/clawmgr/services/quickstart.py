"""Gateway start + reachability wait + optional channel probe."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pydantic import Field, field_validator

from clawmgr.errors.exceptions import CommandError, JobPreconditionError
from clawmgr.models.common import CamelModel
from clawmgr.models.onboarding import GatewayProbe
from clawmgr.process.manager import GATEWAY_PROCESS_ID, ProcessManager, gateway_args
from clawmgr.process.runner import CommandRunner, LogSink
from clawmgr.services.gateway import check_gateway, wait_for_gateway
from clawmgr.services.onboarding import OnboardingStatusService
from clawmgr.services.system import get_cli_status

logger = logging.getLogger(__name__)

GATEWAY_MODE_TIMEOUT_MS = 8000
PROBE_TIMEOUT_MS = 12_000
EARLY_EXIT_CHECK_SECONDS = 0.5
DEFAULT_GATEWAY_PORT = 18789


class QuickstartRequest(CamelModel):
    run_probe: bool = False
    start_gateway: bool = True
    gateway_host: str = "127.0.0.1"
    gateway_port: int = Field(DEFAULT_GATEWAY_PORT, gt=0, le=65535)

    @field_validator("gateway_port", mode="before")
    @classmethod
    def _lenient_port(cls, value):
        """Unparseable or out-of-range ports fall back to the default."""
        try:
            port = int(value)
        except (TypeError, ValueError):
            return DEFAULT_GATEWAY_PORT
        return port if 0 < port <= 65535 else DEFAULT_GATEWAY_PORT


@dataclass
class QuickstartLimits:
    gateway_timeout_ms: int = 60_000
    probe_attempts: int = 3
    probe_delay_ms: int = 2000
    early_exit_check_seconds: float = EARLY_EXIT_CHECK_SECONDS


class QuickstartError(Exception):
    """Quickstart could not bring the gateway up."""


def describe_probe(probe: GatewayProbe) -> str:
    latency = "n/a" if probe.latency_ms is None else probe.latency_ms
    return f"Gateway probe: ok={probe.ok} error={probe.error or 'none'} latency={latency}ms"


def _dump_gateway_tail(process_manager: ProcessManager, log: LogSink, heading: str) -> None:
    snapshot = process_manager.get_snapshot(GATEWAY_PROCESS_ID)
    if snapshot and snapshot.last_lines:
        log(heading)
        for line in snapshot.last_lines:
            log(f"[gateway] {line}")


async def run_quickstart(
    request: QuickstartRequest,
    *,
    runner: CommandRunner,
    process_manager: ProcessManager,
    onboarding: OnboardingStatusService,
    cli_bin: str,
    limits: QuickstartLimits,
    log: LogSink,
) -> dict:
    """Bring the gateway up and optionally probe channels.

    Returns ``{"gatewayReady": bool, "probeOk": bool | None}``.

    Raises:
        JobPreconditionError: the agent CLI is not installed.
        QuickstartError: the gateway exited early, never became reachable, or
            could not be started.
    """
    host, port = request.gateway_host, request.gateway_port
    log(f"Gateway: host={host} port={port} timeout={limits.gateway_timeout_ms}ms")

    log("Checking CLI environment...")
    cli = await get_cli_status(runner, cli_bin)
    if not cli.installed:
        log("CLI not found.")
        raise JobPreconditionError("clawdbot CLI not installed")
    if cli.path:
        log(f"CLI path: {cli.path}")
    if cli.version:
        log(f"CLI version: {cli.version}")

    probe_ok: bool | None = None
    if request.start_gateway:
        log("Configuring gateway mode...")
        await runner.run_with_logs(
            cli_bin,
            ["config", "set", "gateway.mode", "local"],
            GATEWAY_MODE_TIMEOUT_MS,
            on_log=lambda line: log(f"[config] {line}"),
        )

        args = gateway_args(port)
        log(f"Starting gateway: {cli_bin} {' '.join(args)}")
        started = await process_manager.start_process(
            GATEWAY_PROCESS_ID,
            args=args,
            on_log=lambda line: log(f"[gateway] {line}"),
        )
        if not started.ok:
            raise QuickstartError(started.error or "unknown")

        await asyncio.sleep(limits.early_exit_check_seconds)
        early = process_manager.get_snapshot(GATEWAY_PROCESS_ID)
        if early is not None and not early.running:
            _dump_gateway_tail(process_manager, log, "Gateway process exited, output:")
            raise QuickstartError("gateway process exited")

        gateway_ready = await wait_for_gateway(host, port, limits.gateway_timeout_ms)
        if not gateway_ready:
            log("Gateway start timed out.")
            probe = await check_gateway(host, port)
            log(describe_probe(probe))
            _dump_gateway_tail(process_manager, log, "Gateway output (recent):")
            snapshot = process_manager.get_snapshot(GATEWAY_PROCESS_ID)
            if snapshot is not None:
                if snapshot.exit_code is not None:
                    log(f"Gateway process exited, exit code: {snapshot.exit_code}")
                log(f"Gateway process: running={snapshot.running} pid={snapshot.pid or '?'}")
            log(f"Hint: make sure port {port} is free, or run `{cli_bin} logs --follow`.")
            raise QuickstartError("gateway not ready")
        log("Gateway ready.")
    else:
        log("Checking gateway...")
        probe = await check_gateway(host, port)
        gateway_ready = probe.ok
        if gateway_ready:
            log("Gateway ready.")
        else:
            log(f"Gateway not ready: error={probe.error or 'none'}")

    if request.run_probe:
        log("Probing channels...")
        attempts = max(1, limits.probe_attempts)
        for attempt in range(1, attempts + 1):
            try:
                await runner.run(cli_bin, ["channels", "status", "--probe"], PROBE_TIMEOUT_MS)
                probe_ok = True
            except (CommandError, OSError) as exc:
                logger.debug("Channel probe attempt %d failed: %s", attempt, exc)
                probe_ok = False
            if probe_ok or attempt >= attempts:
                break
            log(f"Channel probe failed, retrying in {limits.probe_delay_ms}ms ({attempt}/{attempts})...")
            await asyncio.sleep(limits.probe_delay_ms / 1000)
        onboarding.record_probe(bool(probe_ok))
        log("Channel probe passed." if probe_ok else "Channel probe failed.")

    return {"gatewayReady": gateway_ready, "probeOk": probe_ok}
