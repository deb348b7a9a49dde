"""Pydantic models for the onboarding snapshot read model."""

from datetime import datetime

from pydantic import Field

from clawmgr.models.common import CamelModel
from clawmgr.models.enums import OnboardingStep
from clawmgr.models.process import ProcessSnapshot


class CliStatus(CamelModel):
    installed: bool
    path: str | None = None
    version: str | None = None


class GatewayProbe(CamelModel):
    ok: bool
    host: str
    port: int
    latency_ms: int | None = None
    error: str | None = None


class ProbeResult(CamelModel):
    ok: bool
    at: datetime


class DiscordStatus(CamelModel):
    token_configured: bool = False
    allow_from_configured: bool = False
    pending_pairings: int = 0


class AiStatus(CamelModel):
    configured: bool = False
    missing_providers: list[str] = Field(default_factory=list)
    error: str | None = None


class OnboardingStatus(CamelModel):
    discord: DiscordStatus = Field(default_factory=DiscordStatus)
    ai: AiStatus = Field(default_factory=AiStatus)
    probe: ProbeResult | None = None


class RuntimeInfo(CamelModel):
    python: str
    platform: str
    arch: str


class CommandInfo(CamelModel):
    id: str
    title: str
    description: str
    command: str
    cwd: str
    allow_run: bool


class StatusSnapshot(CamelModel):
    ok: bool = True
    now: datetime
    system: RuntimeInfo
    cli: CliStatus
    gateway: GatewayProbe
    onboarding: OnboardingStatus
    next_step: OnboardingStep
    commands: list[CommandInfo] = Field(default_factory=list)
    processes: list[ProcessSnapshot] = Field(default_factory=list)
