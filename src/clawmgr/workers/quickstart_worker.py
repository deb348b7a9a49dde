"""Worker that brings the local gateway up and optionally probes channels."""

from clawmgr.process.runner import LogSink
from clawmgr.services.quickstart import QuickstartLimits, QuickstartRequest, run_quickstart
from clawmgr.workers.base import JobWorker


class QuickstartWorker(JobWorker):
    kind = "quickstart"
    label = "Quickstart"
    failure_prefix = "Quickstart failed"
    invalidates_onboarding = True

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        settings = self.context.settings
        request = QuickstartRequest.model_validate(payload)
        limits = QuickstartLimits(
            gateway_timeout_ms=settings.gateway_timeout_ms,
            probe_attempts=settings.probe_attempts,
            probe_delay_ms=settings.probe_delay_ms,
        )
        return await run_quickstart(
            request,
            runner=self.context.runner,
            process_manager=self.context.process_manager,
            onboarding=self.context.onboarding,
            cli_bin=settings.cli_bin,
            limits=limits,
            log=log,
        )
