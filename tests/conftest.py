"""Shared test fixtures."""

import asyncio
import sys

import pytest
from httpx import ASGITransport, AsyncClient

from clawmgr.config import Settings
from clawmgr.errors.exceptions import CommandFailedError
from clawmgr.jobs.store import JobStore
from clawmgr.models.process import CommandDefinition
from clawmgr.process.manager import GATEWAY_PROCESS_ID, ProcessManager
from clawmgr.services.auth import AuthService
from clawmgr.services.onboarding import OnboardingStatusService
from clawmgr.workers.base import WorkerContext


class FakeRunner:
    """Stands in for CommandRunner: records calls and answers by argv prefix.

    ``responses`` maps an argv prefix tuple to a string (stdout), an
    exception instance (raised) or a callable taking the argv list.
    """

    def __init__(self, responses=None, env=None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, list[str], dict | None]] = []
        self._env = {"PATH": ""} if env is None else env

    @property
    def env(self) -> dict:
        return dict(self._env)

    def _answer(self, args):
        matches = [key for key in self.responses if tuple(args[: len(key)]) == key]
        if not matches:
            return ""
        value = self.responses[max(matches, key=len)]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            return value(list(args))
        return value

    async def run(self, command, args, timeout_ms, env=None):
        self.calls.append((command, list(args), dict(env) if env is not None else None))
        await asyncio.sleep(0)
        return self._answer(args)

    async def run_with_logs(self, command, args, timeout_ms, on_log, env=None):
        output = await self.run(command, args, timeout_ms, env=env)
        for line in output.splitlines():
            if line.strip():
                on_log(line)
        return output

    def argv_calls(self) -> list[list[str]]:
        return [args for _, args, _ in self.calls]


def failing(message: str = "boom", code: int = 1) -> CommandFailedError:
    return CommandFailedError(code, message)


async def wait_for_terminal(store: JobStore, job_id: str, timeout: float = 5.0):
    """Poll the store until the job is success or failed."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        job = store.get_job(job_id)
        if job is not None and job.status.is_terminal:
            return job
        await asyncio.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish within {timeout}s")


def python_command(process_id: str, code: str, cwd: str) -> CommandDefinition:
    return CommandDefinition(
        id=process_id,
        title=process_id,
        description=f"test command {process_id}",
        command=sys.executable,
        args=["-c", code],
        cwd=cwd,
    )


@pytest.fixture
def settings(tmp_path):
    """Settings with the CLI resolved to the test interpreter (always on PATH)."""
    return Settings(
        cli_bin=sys.executable,
        repo_root=str(tmp_path),
        resource_dir=str(tmp_path / "resources"),
        skills_dir=str(tmp_path / "skills"),
        admin_config_path=str(tmp_path / "admin.json"),
        gateway_timeout_ms=1000,
        probe_attempts=2,
        probe_delay_ms=10,
    )


@pytest.fixture
def fake_runner():
    return FakeRunner({("--version",): "2026.1.0\n"})


@pytest.fixture
def store():
    return JobStore()


@pytest.fixture
async def process_manager(tmp_path):
    manager = ProcessManager(
        [
            python_command(GATEWAY_PROCESS_ID, "import sys; sys.exit(1)", str(tmp_path)),
            python_command("sleeper", "import time; print('ready', flush=True); time.sleep(30)", str(tmp_path)),
        ]
    )
    yield manager
    await manager.shutdown()


@pytest.fixture
def onboarding(fake_runner, settings, tmp_path):
    env = {"BLOCKCLAW_STATE_DIR": str(tmp_path / "state")}
    return OnboardingStatusService(fake_runner, cli_bin=settings.cli_bin, cache_ttl_ms=5000, env=env)


@pytest.fixture
def worker_context(store, fake_runner, process_manager, onboarding, settings):
    return WorkerContext(
        store=store,
        runner=fake_runner,
        process_manager=process_manager,
        onboarding=onboarding,
        settings=settings,
    )


@pytest.fixture
def auth_service(tmp_path):
    return AuthService(tmp_path / "admin.json", disabled=True)


@pytest.fixture
def app(worker_context, auth_service):
    """Create a test application with the job core wired onto app.state."""
    from clawmgr.main import create_app

    _app = create_app()
    _app.state.job_store = worker_context.store
    _app.state.runner = worker_context.runner
    _app.state.process_manager = worker_context.process_manager
    _app.state.onboarding = worker_context.onboarding
    _app.state.worker_context = worker_context
    _app.state.auth = auth_service
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
