"""Onboarding status snapshot endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Query, Request

from clawmgr.config import settings
from clawmgr.dependencies import Auth, Onboarding, Processes
from clawmgr.models.enums import OnboardingStep

router = APIRouter(tags=["Status"])


@router.get("/status")
async def get_status(
    request: Request,
    onboarding: Onboarding,
    processes: Processes,
    auth: Auth,
    gateway_host: str | None = Query(None, alias="gatewayHost"),
    gateway_port: int | None = Query(None, alias="gatewayPort", gt=0, le=65535),
) -> dict:
    # Anonymous callers only learn that they need to sign in.
    if getattr(request.state, "user", None) is None and not auth.disabled:
        return {
            "ok": True,
            "now": datetime.now(timezone.utc).isoformat(),
            "nextStep": OnboardingStep.AUTH.value,
            "auth": auth.status(),
        }

    snapshot = await onboarding.snapshot(
        processes,
        gateway_host or settings.gateway_host,
        gateway_port or settings.gateway_port,
    )
    return snapshot.to_wire()
