"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from clawmgr.config import APP_VERSION

router = APIRouter()


@router.get("/health")
async def health_check():
    """Return service liveness; never requires auth."""
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat(), "version": APP_VERSION}
