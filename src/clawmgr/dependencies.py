"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from clawmgr.jobs.store import JobStore
from clawmgr.process.manager import ProcessManager
from clawmgr.process.runner import CommandRunner
from clawmgr.services.auth import AuthService
from clawmgr.services.onboarding import OnboardingStatusService
from clawmgr.workers.base import WorkerContext


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_runner(request: Request) -> CommandRunner:
    return request.app.state.runner


def get_process_manager(request: Request) -> ProcessManager:
    return request.app.state.process_manager


def get_onboarding(request: Request) -> OnboardingStatusService:
    return request.app.state.onboarding


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def get_worker_context(request: Request) -> WorkerContext:
    return request.app.state.worker_context


# Type aliases for dependency injection
Store = Annotated[JobStore, Depends(get_job_store)]
Runner = Annotated[CommandRunner, Depends(get_runner)]
Processes = Annotated[ProcessManager, Depends(get_process_manager)]
Onboarding = Annotated[OnboardingStatusService, Depends(get_onboarding)]
Auth = Annotated[AuthService, Depends(get_auth_service)]
Workers = Annotated[WorkerContext, Depends(get_worker_context)]
