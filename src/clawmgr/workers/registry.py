"""Worker registry mapping job kinds to worker classes."""

from clawmgr.workers.base import JobWorker, WorkerContext


def _build_registry() -> dict[str, type[JobWorker]]:
    from clawmgr.workers.ai_auth_worker import AiAuthWorker
    from clawmgr.workers.cli_install_worker import CliInstallWorker
    from clawmgr.workers.download_worker import DownloadWorker
    from clawmgr.workers.pairing_worker import PairingApproveWorker, PairingWaitWorker
    from clawmgr.workers.quickstart_worker import QuickstartWorker
    from clawmgr.workers.skills_worker import SkillsWorker

    workers = [
        CliInstallWorker,
        QuickstartWorker,
        PairingApproveWorker,
        PairingWaitWorker,
        AiAuthWorker,
        DownloadWorker,
        SkillsWorker,
    ]
    return {worker.kind: worker for worker in workers}


_registry: dict[str, type[JobWorker]] = {}


def _ensure_registry() -> None:
    if not _registry:
        _registry.update(_build_registry())


def get_worker(kind: str, context: WorkerContext) -> JobWorker | None:
    """Get a worker instance for a job kind."""
    _ensure_registry()
    cls = _registry.get(kind)
    return cls(context) if cls else None
