"""Master API router mounted at /api."""

from fastapi import APIRouter

from clawmgr.api.routes import auth, discord, jobs, processes, status

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(status.router)
api_router.include_router(processes.router)
api_router.include_router(jobs.router)
api_router.include_router(discord.router)
