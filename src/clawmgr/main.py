"""FastAPI application factory and lifespan management."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clawmgr.config import APP_VERSION, settings
from clawmgr.jobs.store import JobStore
from clawmgr.logging_config import configure_logging
from clawmgr.process.manager import ProcessManager, build_command_registry
from clawmgr.process.runner import CommandRunner
from clawmgr.services.auth import AuthService
from clawmgr.services.onboarding import OnboardingStatusService
from clawmgr.services.resources import DEFAULT_TIMEOUT
from clawmgr.workers.base import WorkerContext
from clawmgr.workers.queue import cancel_running_jobs

# Configure logging at import time
configure_logging(log_level=settings.log_level, json_output=settings.json_logs)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the job core onto app.state and tear it down on shutdown."""
    root = settings.effective_repo_root
    runner = CommandRunner(cwd=root)
    process_manager = ProcessManager(
        build_command_registry(root, settings.cli_bin, settings.npm_bin, settings.gateway_port)
    )
    onboarding = OnboardingStatusService(
        runner,
        cli_bin=settings.cli_bin,
        cache_ttl_ms=settings.onboarding_cache_ms,
        discord_status_stale_ms=settings.discord_status_stale_ms,
    )
    store = JobStore(retention=settings.job_retention)
    http_client = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True)

    app.state.job_store = store
    app.state.runner = runner
    app.state.process_manager = process_manager
    app.state.onboarding = onboarding
    app.state.auth = AuthService.from_settings(settings)
    app.state.worker_context = WorkerContext(
        store=store,
        runner=runner,
        process_manager=process_manager,
        onboarding=onboarding,
        settings=settings,
        http_client=http_client,
    )

    logger.info("Manager API started (root=%s, auth=%s)", root, "off" if settings.auth_disabled else "on")
    yield

    # Shutdown
    await cancel_running_jobs()
    await process_manager.shutdown()
    await http_client.aclose()
    logger.info("Manager API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Clawdbot Manager API",
        version=APP_VERSION,
        description="Local onboarding console for the Clawdbot agent CLI.",
        lifespan=lifespan,
    )

    # CORS middleware for the wizard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add middleware (order matters: last added = first executed)
    from clawmgr.api.middleware.auth import AuthMiddleware
    from clawmgr.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(AuthMiddleware)
    app.add_middleware(TraceIdMiddleware)

    # Register error handlers
    from clawmgr.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Import and mount routers
    from clawmgr.api.routes import health
    from clawmgr.api.router import api_router
    app.include_router(health.router, tags=["Health"])
    app.include_router(api_router)

    return app


app = create_app()
