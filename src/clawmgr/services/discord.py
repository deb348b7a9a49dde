"""Discord channel configuration through the agent CLI."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from clawmgr.errors.exceptions import CommandError
from clawmgr.process.runner import CommandRunner
from clawmgr.services.cli_output import parse_json_from_cli_output

logger = logging.getLogger(__name__)

PAIRING_APPROVE_TIMEOUT_MS = 8000


@dataclass
class StepOutcome:
    step: str
    ok: bool
    elapsed_ms: int
    output: str = ""
    error: str = ""

    def describe(self, timeout_ms: int) -> str:
        return f"{self.step} failed after {self.elapsed_ms}ms (timeout {timeout_ms}ms): {self.error}"


async def _run_step(runner: CommandRunner, cli_bin: str, step: str, args: list[str], timeout_ms: int) -> StepOutcome:
    started = time.monotonic()
    try:
        output = await runner.run(cli_bin, args, timeout_ms)
    except (CommandError, OSError) as exc:
        elapsed = int((time.monotonic() - started) * 1000)
        logger.warning("Discord step '%s' failed: %s", step, exc)
        return StepOutcome(step=step, ok=False, elapsed_ms=elapsed, error=str(exc))
    return StepOutcome(step=step, ok=True, elapsed_ms=int((time.monotonic() - started) * 1000), output=output)


async def save_discord_token(runner: CommandRunner, cli_bin: str, token: str, timeout_ms: int) -> str | None:
    """Store the bot token, then make sure DMs are allowed. Returns an error or None."""
    result = await _run_step(
        runner, cli_bin, "config set token", ["config", "set", "channels.discord.token", token], timeout_ms
    )
    if not result.ok:
        return result.describe(timeout_ms)
    return await ensure_discord_dm_allow(runner, cli_bin, timeout_ms)


async def ensure_discord_dm_allow(runner: CommandRunner, cli_bin: str, timeout_ms: int) -> str | None:
    current = await _run_step(
        runner,
        cli_bin,
        "config get allowFrom",
        ["config", "get", "channels.discord.dm.allowFrom", "--json"],
        timeout_ms,
    )
    if current.ok:
        parsed = parse_json_from_cli_output(current.output)
        if isinstance(parsed, list) and parsed:
            return None

    result = await _run_step(
        runner,
        cli_bin,
        "config set allowFrom",
        ["config", "set", "channels.discord.dm.allowFrom", '["*"]'],
        timeout_ms,
    )
    return None if result.ok else result.describe(timeout_ms)


def pairing_approve_args(code: str, notify: bool = False) -> list[str]:
    args = ["pairing", "approve", "discord", code]
    if notify:
        args.append("--notify")
    return args


async def approve_discord_pairing(runner: CommandRunner, cli_bin: str, code: str) -> str | None:
    """Approve one pairing code synchronously. Returns an error or None."""
    try:
        await runner.run(cli_bin, pairing_approve_args(code), PAIRING_APPROVE_TIMEOUT_MS)
    except (CommandError, OSError) as exc:
        return str(exc)
    return None
