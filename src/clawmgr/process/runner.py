"""Child process execution with deadlines and line-by-line output capture."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Callable, Mapping, Sequence

from clawmgr.errors.exceptions import CommandFailedError, CommandTimeoutError

logger = logging.getLogger(__name__)

LogSink = Callable[[str], None]

# StreamReader line limit; CLI installers can print very long progress lines.
LINE_LIMIT = 1024 * 1024

# Time between SIGTERM and SIGKILL for a timed-out child
_KILL_GRACE_SECONDS = 1.0


async def iter_lines(stream: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield raw lines (newline included) until EOF.

    Lines longer than the reader limit are reassembled from the pieces the
    reader hands back, so nothing is dropped.
    """
    pending = bytearray()
    while True:
        try:
            chunk = await stream.readuntil(b"\n")
        except asyncio.LimitOverrunError as exc:
            pending += await stream.readexactly(exc.consumed)
            continue
        except asyncio.IncompleteReadError as exc:
            pending += exc.partial
            if pending:
                yield bytes(pending)
            return
        if pending:
            pending += chunk
            chunk = bytes(pending)
            pending.clear()
        yield chunk


async def _pump_lines(
    stream: asyncio.StreamReader | None,
    chunks: list[str],
    on_line: LogSink | None,
) -> None:
    if stream is None:
        return
    async for raw in iter_lines(stream):
        text = raw.decode("utf-8", errors="replace")
        chunks.append(text)
        if on_line is not None:
            line = text.rstrip("\r\n")
            if line.strip():
                on_line(line)


async def terminate_process(proc: asyncio.subprocess.Process, grace: float = _KILL_GRACE_SECONDS) -> None:
    """Send SIGTERM, escalate to SIGKILL after ``grace`` seconds, and reap."""
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(proc.wait(), timeout=grace)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()


async def run_command_with_logs(
    command: str,
    args: Sequence[str],
    *,
    timeout_ms: int,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    on_log: LogSink | None = None,
) -> str:
    """Run ``command`` and return its stdout, forwarding each line to ``on_log``.

    Raises:
        ValueError: ``timeout_ms`` is not positive.
        CommandTimeoutError: the deadline passed; the child has been terminated.
        CommandFailedError: non-zero exit; message is stderr, or stdout if empty.
        OSError: the binary could not be spawned.
    """
    if timeout_ms <= 0:
        raise ValueError("timeout_ms must be positive")

    proc = await asyncio.create_subprocess_exec(
        command,
        *args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        limit=LINE_LIMIT,
    )

    stdout_chunks: list[str] = []
    stderr_chunks: list[str] = []
    readers = asyncio.gather(
        _pump_lines(proc.stdout, stdout_chunks, on_log),
        _pump_lines(proc.stderr, stderr_chunks, on_log),
    )

    async def _finish() -> int:
        await readers
        return await proc.wait()

    try:
        exit_code = await asyncio.wait_for(_finish(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        logger.warning("Command timed out after %dms: %s", timeout_ms, command)
        await terminate_process(proc)
        raise CommandTimeoutError(timeout_ms) from None
    finally:
        if not readers.done():
            readers.cancel()
        if proc.returncode is None:
            await terminate_process(proc)

    stdout = "".join(stdout_chunks)
    if exit_code != 0:
        stderr = "".join(stderr_chunks)
        raise CommandFailedError(exit_code, stderr if stderr.strip() else stdout)
    return stdout


async def run_command(
    command: str,
    args: Sequence[str],
    *,
    timeout_ms: int,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Run ``command`` buffering all output; see :func:`run_command_with_logs`."""
    return await run_command_with_logs(command, args, timeout_ms=timeout_ms, cwd=cwd, env=env)


class CommandRunner:
    """Runs external commands with a bound working directory and environment.

    Coordinators depend on this object rather than on the module functions so
    tests can substitute a recording fake.
    """

    def __init__(self, cwd: str | None = None, env: Mapping[str, str] | None = None) -> None:
        self.cwd = cwd
        self._env = env

    @property
    def env(self) -> dict[str, str]:
        return dict(self._env if self._env is not None else os.environ)

    async def run(
        self,
        command: str,
        args: Sequence[str],
        timeout_ms: int,
        env: Mapping[str, str] | None = None,
    ) -> str:
        return await run_command(
            command, args, timeout_ms=timeout_ms, cwd=self.cwd, env=env or self.env
        )

    async def run_with_logs(
        self,
        command: str,
        args: Sequence[str],
        timeout_ms: int,
        on_log: LogSink,
        env: Mapping[str, str] | None = None,
    ) -> str:
        return await run_command_with_logs(
            command,
            args,
            timeout_ms=timeout_ms,
            cwd=self.cwd,
            env=env or self.env,
            on_log=on_log,
        )
