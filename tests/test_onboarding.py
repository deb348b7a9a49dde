"""Onboarding status aggregation tests."""

import json
import sys

import pytest

from clawmgr.models.enums import OnboardingStep
from clawmgr.services.onboarding import OnboardingStatusService, TtlCache, resolve_next_step

from conftest import FakeRunner, failing

NEXT_STEP_DEFAULTS = dict(
    cli_installed=True,
    gateway_ok=True,
    token_configured=True,
    ai_configured=True,
    allow_from_configured=True,
    probe_ok=False,
)


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"cli_installed": False, "gateway_ok": False}, OnboardingStep.CLI),
        ({"gateway_ok": False, "token_configured": False}, OnboardingStep.GATEWAY),
        ({"token_configured": False, "ai_configured": False}, OnboardingStep.TOKEN),
        ({"ai_configured": False}, OnboardingStep.AI),
        ({"allow_from_configured": False}, OnboardingStep.PAIRING),
        ({}, OnboardingStep.PROBE),
        ({"probe_ok": True, "gateway_ok": False}, OnboardingStep.COMPLETE),
    ],
)
def test_resolve_next_step(overrides, expected):
    assert resolve_next_step(**{**NEXT_STEP_DEFAULTS, **overrides}) == expected


def test_ttl_cache_expires():
    now = [100.0]
    cache = TtlCache(ttl_ms=1000, clock=lambda: now[0])
    assert cache.get() is None
    cache.set("value")
    now[0] += 0.5
    assert cache.get() == "value"
    now[0] += 0.6
    assert cache.get() is None


def models_status(missing):
    return "[models] checking\n" + json.dumps({"auth": {"missingProvidersInUse": missing}})


def make_service(tmp_path, runner, **env):
    env = {"BLOCKCLAW_STATE_DIR": str(tmp_path), **env}
    return OnboardingStatusService(runner, cli_bin=sys.executable, cache_ttl_ms=60_000, env=env)


@pytest.mark.asyncio
async def test_cli_missing_calls_nothing(tmp_path):
    runner = FakeRunner()
    service = make_service(tmp_path, runner)
    status = await service.get_status(cli_installed=False)
    assert runner.calls == []
    assert not status.discord.token_configured
    assert status.discord.pending_pairings == 0
    assert not status.ai.configured


@pytest.mark.asyncio
async def test_status_aggregates_cli_and_config(tmp_path):
    (tmp_path / "blockclaw.json").write_text(
        json.dumps({"channels": {"discord": {"token": "${BOT}", "dm": {"allowFrom": ["*"]}}}})
    )
    runner = FakeRunner(
        {
            ("pairing", "list"): json.dumps({"requests": [{"code": "A"}, {"code": "B"}]}),
            ("models", "status"): models_status(["openai"]),
        }
    )
    service = make_service(tmp_path, runner, BOT="tok")

    status = await service.get_status(cli_installed=True)

    assert status.discord.token_configured
    assert status.discord.allow_from_configured
    assert status.discord.pending_pairings == 2
    assert not status.ai.configured
    assert status.ai.missing_providers == ["openai"]


@pytest.mark.asyncio
async def test_env_token_counts_as_configured(tmp_path):
    runner = FakeRunner({("models", "status"): models_status([])})
    service = make_service(tmp_path, runner, DISCORD_BOT_TOKEN="tok")
    status = await service.get_status(cli_installed=True)
    assert status.discord.token_configured
    assert status.ai.configured


@pytest.mark.asyncio
async def test_cli_failures_degrade_gracefully(tmp_path):
    runner = FakeRunner(
        {
            ("pairing", "list"): failing("gateway offline"),
            ("models", "status"): failing("no models"),
        }
    )
    service = make_service(tmp_path, runner)
    status = await service.get_status(cli_installed=True)
    assert status.discord.pending_pairings == 0
    assert status.ai.configured is False
    assert status.ai.error == "no models"


@pytest.mark.asyncio
async def test_cached_until_invalidated(tmp_path):
    runner = FakeRunner({("models", "status"): models_status([])})
    service = make_service(tmp_path, runner)

    await service.get_status(cli_installed=True)
    calls = len(runner.calls)
    await service.get_status(cli_installed=True)
    assert len(runner.calls) == calls

    service.invalidate()
    await service.get_status(cli_installed=True)
    assert len(runner.calls) == calls * 2


@pytest.mark.asyncio
async def test_unreadable_config_reuses_last_good_flags(tmp_path):
    config = tmp_path / "blockclaw.json"
    config.write_text(json.dumps({"channels": {"discord": {"token": "abc"}}}))
    runner = FakeRunner({("models", "status"): models_status([])})
    service = make_service(tmp_path, runner)

    assert (await service.get_status(cli_installed=True)).discord.token_configured

    config.write_text("{ broken")
    service.invalidate()
    assert (await service.get_status(cli_installed=True)).discord.token_configured


@pytest.mark.asyncio
async def test_record_probe_is_reported_and_invalidates(tmp_path):
    runner = FakeRunner({("models", "status"): models_status([])})
    service = make_service(tmp_path, runner)
    await service.get_status(cli_installed=True)

    service.record_probe(True)
    status = await service.get_status(cli_installed=True)
    assert status.probe is not None and status.probe.ok
    assert service.last_probe.ok
