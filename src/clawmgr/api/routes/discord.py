"""Synchronous Discord configuration endpoints."""

from fastapi import APIRouter

from clawmgr.config import settings
from clawmgr.dependencies import Onboarding, Runner
from clawmgr.errors.exceptions import ManagerError, ValidationError
from clawmgr.models.requests import DiscordTokenRequest, PairingRequest
from clawmgr.services.discord import approve_discord_pairing, save_discord_token

router = APIRouter(prefix="/discord", tags=["Discord"])


class CliStepError(ManagerError):
    """An agent CLI call behind a synchronous endpoint failed."""

    def __init__(self, message: str):
        super().__init__("CLI_ERROR", message, status_code=500)


@router.post("/token")
async def set_discord_token(body: DiscordTokenRequest, runner: Runner, onboarding: Onboarding) -> dict:
    token = body.token.strip()
    if not token:
        raise ValidationError("missing token")
    error = await save_discord_token(runner, settings.cli_bin, token, settings.discord_token_timeout_ms)
    onboarding.invalidate()
    if error:
        raise CliStepError(error)
    return {"ok": True}


@router.post("/pairing")
async def approve_pairing(body: PairingRequest, runner: Runner, onboarding: Onboarding) -> dict:
    if not body.code:
        raise ValidationError("missing code")
    error = await approve_discord_pairing(runner, settings.cli_bin, body.code)
    onboarding.invalidate()
    if error:
        raise CliStepError(error)
    return {"ok": True}
