"""Registry of named, re-startable long-lived commands (e.g. the gateway)."""

from __future__ import annotations

import asyncio
import logging
import os
from collections import deque
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from clawmgr.models.process import CommandDefinition, ProcessResult, ProcessSnapshot
from clawmgr.process.runner import LINE_LIMIT, LogSink, iter_lines

logger = logging.getLogger(__name__)

LOG_CAPACITY = 200
SNAPSHOT_TAIL = 20
MAX_LINE_LENGTH = 1000
STOP_GRACE_SECONDS = 2.0

GATEWAY_PROCESS_ID = "gateway-run"


def gateway_args(port: int) -> list[str]:
    return [
        "gateway",
        "run",
        "--allow-unconfigured",
        "--bind",
        "loopback",
        "--port",
        str(port),
        "--force",
    ]


def build_command_registry(
    root: str,
    cli_bin: str = "clawdbot",
    npm_bin: str = "npm",
    gateway_port: int = 18789,
) -> list[CommandDefinition]:
    """Return the fixed set of commands the console may run."""
    return [
        CommandDefinition(
            id="install-cli",
            title="Install Clawdbot CLI",
            description="Install the latest Clawdbot CLI (may require sudo)",
            command=npm_bin,
            args=["i", "-g", "clawdbot@latest"],
            cwd=root,
        ),
        CommandDefinition(
            id=GATEWAY_PROCESS_ID,
            title="Start gateway",
            description="Run the local gateway (loopback only)",
            command=cli_bin,
            args=gateway_args(gateway_port),
            cwd=root,
        ),
        CommandDefinition(
            id="channels-probe",
            title="Probe channels",
            description="Check channel connectivity",
            command=cli_bin,
            args=["channels", "status", "--probe"],
            cwd=root,
        ),
    ]


class ManagedProcess:
    """One run of a registered command."""

    def __init__(self, definition: CommandDefinition, args: list[str]) -> None:
        self.definition = definition
        self.args = args
        self.proc: asyncio.subprocess.Process | None = None
        self.logs: deque[str] = deque(maxlen=LOG_CAPACITY)
        self.started_at = datetime.now(timezone.utc)
        self.exit_code: int | None = None
        self.on_log: LogSink | None = None
        self.tasks: list[asyncio.Task] = []
        self.exited = asyncio.Event()

    @property
    def running(self) -> bool:
        return self.proc is not None and self.exit_code is None and self.proc.returncode is None

    def push_log(self, text: str) -> None:
        for line in text.splitlines():
            if not line.strip():
                continue
            clipped = line[:MAX_LINE_LENGTH]
            self.logs.append(clipped)
            if self.on_log is not None:
                try:
                    self.on_log(clipped)
                except Exception:
                    logger.exception("Process log observer failed (id=%s)", self.definition.id)

    def mark_exited(self, code: int | None) -> None:
        self.exit_code = code
        self.exited.set()


def _snapshot(definition: CommandDefinition, managed: ManagedProcess | None) -> ProcessSnapshot:
    return ProcessSnapshot(
        id=definition.id,
        title=definition.title,
        description=definition.description,
        command=definition.format_command(managed.args if managed else None),
        cwd=definition.cwd,
        running=bool(managed and managed.running),
        pid=managed.proc.pid if managed and managed.proc else None,
        started_at=managed.started_at if managed else None,
        exit_code=managed.exit_code if managed else None,
        last_lines=list(managed.logs)[-SNAPSHOT_TAIL:] if managed else [],
    )


class ProcessManager:
    """Start/stop/list for a fixed command registry.

    At most one live child exists per definition id; ``start_process`` on a
    live definition returns the existing snapshot.
    """

    def __init__(self, registry: Sequence[CommandDefinition]) -> None:
        self._definitions = {definition.id: definition for definition in registry}
        self._processes: dict[str, ManagedProcess] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def definitions(self) -> list[CommandDefinition]:
        return list(self._definitions.values())

    def list_processes(self) -> list[ProcessSnapshot]:
        return [
            _snapshot(definition, self._processes.get(definition.id))
            for definition in self._definitions.values()
        ]

    def get_snapshot(self, process_id: str) -> ProcessSnapshot | None:
        definition = self._definitions.get(process_id)
        if definition is None:
            return None
        return _snapshot(definition, self._processes.get(process_id))

    async def start_process(
        self,
        process_id: str,
        args: Sequence[str] | None = None,
        env: Mapping[str, str] | None = None,
        on_log: LogSink | None = None,
    ) -> ProcessResult:
        definition = self._definitions.get(process_id)
        if definition is None:
            return ProcessResult(ok=False, error="unknown id")
        if not definition.allow_run:
            return ProcessResult(ok=False, error="not allowed")

        lock = self._locks.setdefault(process_id, asyncio.Lock())
        async with lock:
            existing = self._processes.get(process_id)
            if existing is not None and existing.running:
                return ProcessResult(ok=True, process=_snapshot(definition, existing))

            managed = ManagedProcess(definition, list(args) if args is not None else list(definition.args))
            managed.on_log = on_log
            self._processes[process_id] = managed

            try:
                managed.proc = await asyncio.create_subprocess_exec(
                    definition.command,
                    *managed.args,
                    cwd=definition.cwd,
                    env=dict(env) if env is not None else dict(os.environ),
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    limit=LINE_LIMIT,
                )
            except OSError as exc:
                logger.warning("Failed to spawn %s: %s", process_id, exc)
                managed.push_log(f"spawn error: {exc}")
                managed.mark_exited(1)
                return ProcessResult(ok=True, process=_snapshot(definition, managed))

            logger.info("Started process %s (pid=%s)", process_id, managed.proc.pid)
            managed.tasks = [
                asyncio.create_task(self._read_output(managed)),
                asyncio.create_task(self._watch_exit(managed)),
            ]
            return ProcessResult(ok=True, process=_snapshot(definition, managed))

    async def stop_process(self, process_id: str) -> ProcessResult:
        definition = self._definitions.get(process_id)
        if definition is None:
            return ProcessResult(ok=False, error="unknown id")

        managed = self._processes.get(process_id)
        if managed is None or not managed.running:
            return ProcessResult(ok=True, process=_snapshot(definition, managed))

        try:
            managed.proc.terminate()
        except ProcessLookupError:
            pass
        managed.tasks.append(asyncio.create_task(self._escalate(managed)))
        logger.info("Stopping process %s (pid=%s)", process_id, managed.proc.pid)
        return ProcessResult(ok=True, process=_snapshot(definition, managed))

    async def wait_for_exit(self, process_id: str, timeout: float) -> ProcessSnapshot | None:
        """Wait until the current run of ``process_id`` has been reaped."""
        managed = self._processes.get(process_id)
        if managed is not None:
            try:
                await asyncio.wait_for(managed.exited.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
        return self.get_snapshot(process_id)

    async def shutdown(self) -> None:
        """Stop every live process and wait for them to exit."""
        live = [pid for pid, managed in self._processes.items() if managed.running]
        for process_id in live:
            await self.stop_process(process_id)
        for process_id in live:
            await self.wait_for_exit(process_id, timeout=STOP_GRACE_SECONDS + 1)

    async def _read_output(self, managed: ManagedProcess) -> None:
        stream = managed.proc.stdout
        if stream is None:
            return
        async for raw in iter_lines(stream):
            managed.push_log(raw.decode("utf-8", errors="replace"))

    async def _watch_exit(self, managed: ManagedProcess) -> None:
        code = await managed.proc.wait()
        managed.mark_exited(code)
        logger.info("Process %s exited (code=%s)", managed.definition.id, code)

    async def _escalate(self, managed: ManagedProcess) -> None:
        try:
            await asyncio.wait_for(managed.exited.wait(), timeout=STOP_GRACE_SECONDS)
        except asyncio.TimeoutError:
            if managed.proc is not None and managed.proc.returncode is None:
                logger.warning("Process %s ignored SIGTERM, killing", managed.definition.id)
                try:
                    managed.proc.kill()
                except ProcessLookupError:
                    pass
