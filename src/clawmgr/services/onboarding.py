"""Onboarding status aggregation: a TTL-cached view of external state."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Generic, TypeVar

from clawmgr.errors.exceptions import CommandError
from clawmgr.models.enums import OnboardingStep
from clawmgr.models.onboarding import (
    AiStatus,
    CommandInfo,
    DiscordStatus,
    OnboardingStatus,
    ProbeResult,
    StatusSnapshot,
)
from clawmgr.process.manager import ProcessManager
from clawmgr.process.runner import CommandRunner
from clawmgr.services.agent_config import (
    discord_allow_from_configured,
    read_config_snapshot,
    resolve_discord_token,
)
from clawmgr.services.cli_output import parse_json_from_cli_output
from clawmgr.services.gateway import check_gateway
from clawmgr.services.system import get_cli_status, get_runtime_info

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAIRING_LIST_TIMEOUT_MS = 4000
MODELS_STATUS_TIMEOUT_MS = 8000


class TtlCache(Generic[T]):
    """A single cached value that expires ``ttl_ms`` after it was stored."""

    def __init__(self, ttl_ms: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._value: T | None = None
        self._stored_at: float | None = None

    def get(self) -> T | None:
        if self._stored_at is None:
            return None
        if (self._clock() - self._stored_at) * 1000 >= self.ttl_ms:
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None


def resolve_next_step(
    *,
    cli_installed: bool,
    gateway_ok: bool,
    token_configured: bool,
    ai_configured: bool,
    allow_from_configured: bool,
    probe_ok: bool,
) -> OnboardingStep:
    """Derive which wizard step an authenticated client should show."""
    if not cli_installed:
        return OnboardingStep.CLI
    if probe_ok:
        return OnboardingStep.COMPLETE
    if not gateway_ok:
        return OnboardingStep.GATEWAY
    if not token_configured:
        return OnboardingStep.TOKEN
    if not ai_configured:
        return OnboardingStep.AI
    if allow_from_configured:
        return OnboardingStep.PROBE
    return OnboardingStep.PAIRING


async def count_pending_pairings(runner: CommandRunner, cli_bin: str, timeout_ms: int) -> int:
    """Number of pending Discord pairing requests. Raises on CLI failure."""
    output = await runner.run(cli_bin, ["pairing", "list", "--channel", "discord", "--json"], timeout_ms)
    return len(pending_pairing_requests(output))


def pending_pairing_requests(output: str) -> list:
    parsed = parse_json_from_cli_output(output)
    requests = parsed.get("requests") if isinstance(parsed, dict) else None
    return requests if isinstance(requests, list) else []


class OnboardingStatusService:
    """Derives the onboarding read model with bounded staleness.

    The CLI-derived section is cached for ``cache_ttl_ms``. When the CLI is
    not installed nothing external is invoked.
    """

    def __init__(
        self,
        runner: CommandRunner,
        cli_bin: str = "clawdbot",
        cache_ttl_ms: int = 5000,
        discord_status_stale_ms: int = 30_000,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._runner = runner
        self._cli_bin = cli_bin
        self._env = env
        self._cache: TtlCache[OnboardingStatus] = TtlCache(cache_ttl_ms)
        self._last_discord: TtlCache[tuple[bool, bool]] = TtlCache(discord_status_stale_ms)
        self._last_probe: ProbeResult | None = None

    @property
    def last_probe(self) -> ProbeResult | None:
        return self._last_probe

    def record_probe(self, ok: bool) -> None:
        self._last_probe = ProbeResult(ok=ok, at=datetime.now(timezone.utc))
        self.invalidate()

    def invalidate(self) -> None:
        self._cache.clear()

    async def get_status(self, cli_installed: bool) -> OnboardingStatus:
        cached = self._cache.get()
        if cached is not None:
            return cached

        if not cli_installed:
            status = OnboardingStatus(probe=self._last_probe)
            self._cache.set(status)
            return status

        (token_configured, allow_from), pending, ai = await asyncio.gather(
            asyncio.to_thread(self._read_discord_flags),
            self._read_pending_pairings(),
            self._read_ai_status(),
        )
        status = OnboardingStatus(
            discord=DiscordStatus(
                token_configured=token_configured,
                allow_from_configured=allow_from,
                pending_pairings=pending,
            ),
            ai=ai,
            probe=self._last_probe,
        )
        self._cache.set(status)
        return status

    async def snapshot(
        self,
        process_manager: ProcessManager,
        gateway_host: str,
        gateway_port: int,
    ) -> StatusSnapshot:
        cli, gateway = await asyncio.gather(
            get_cli_status(self._runner, self._cli_bin),
            check_gateway(gateway_host, gateway_port),
        )
        onboarding = await self.get_status(cli.installed)
        next_step = resolve_next_step(
            cli_installed=cli.installed,
            gateway_ok=gateway.ok,
            token_configured=onboarding.discord.token_configured,
            ai_configured=onboarding.ai.configured,
            allow_from_configured=onboarding.discord.allow_from_configured,
            probe_ok=bool(onboarding.probe and onboarding.probe.ok),
        )
        return StatusSnapshot(
            now=datetime.now(timezone.utc),
            system=get_runtime_info(),
            cli=cli,
            gateway=gateway,
            onboarding=onboarding,
            next_step=next_step,
            commands=[
                CommandInfo(
                    id=d.id,
                    title=d.title,
                    description=d.description,
                    command=d.format_command(),
                    cwd=d.cwd,
                    allow_run=d.allow_run,
                )
                for d in process_manager.definitions
            ],
            processes=process_manager.list_processes(),
        )

    def _read_discord_flags(self) -> tuple[bool, bool]:
        env = os.environ if self._env is None else self._env
        env_token = bool((env.get("DISCORD_BOT_TOKEN") or "").strip())

        snapshot = read_config_snapshot(env)
        if snapshot.ok:
            token = resolve_discord_token(snapshot.config, env)
            flags = (env_token or bool(token and token.strip()), discord_allow_from_configured(snapshot.config))
            self._last_discord.set(flags)
            return flags

        if snapshot.reason == "missing":
            flags = (env_token, False)
            self._last_discord.set(flags)
            return flags

        logger.warning("Agent config unreadable (%s): %s", snapshot.reason, snapshot.error)
        return self._last_discord.get() or (False, False)

    async def _read_pending_pairings(self) -> int:
        try:
            return await count_pending_pairings(self._runner, self._cli_bin, PAIRING_LIST_TIMEOUT_MS)
        except (CommandError, OSError) as exc:
            logger.debug("Pairing list failed: %s", exc)
            return 0

    async def _read_ai_status(self) -> AiStatus:
        try:
            output = await self._runner.run(self._cli_bin, ["models", "status", "--json"], MODELS_STATUS_TIMEOUT_MS)
        except (CommandError, OSError) as exc:
            return AiStatus(configured=False, error=str(exc))

        parsed = parse_json_from_cli_output(output)
        auth = parsed.get("auth") if isinstance(parsed, dict) else None
        missing = auth.get("missingProvidersInUse") if isinstance(auth, dict) else None
        providers = [str(item) for item in missing] if isinstance(missing, list) else []
        return AiStatus(configured=not providers, missing_providers=providers)
