"""Worker that installs the agent CLI through npm."""

import logging

from clawmgr.process.runner import LogSink
from clawmgr.services.system import get_cli_status
from clawmgr.workers.base import JobWorker

logger = logging.getLogger(__name__)

CLI_PACKAGE = "clawdbot@latest"


class CliInstallWorker(JobWorker):
    """Install the CLI globally unless it is already on PATH."""

    kind = "cli_install"
    label = "Install Clawdbot CLI"
    failure_prefix = "Install failed"
    invalidates_onboarding = True

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        settings = self.context.settings
        runner = self.context.runner
        log("Installing Clawdbot CLI...")

        current = await get_cli_status(runner, settings.cli_bin)
        if current.installed:
            log(f"CLI already installed ({current.version})." if current.version else "CLI already installed.")
            return {"version": current.version}

        env = {**runner.env, "NPM_CONFIG_AUDIT": "false", "NPM_CONFIG_FUND": "false"}
        await runner.run_with_logs(
            settings.npm_bin,
            ["i", "-g", CLI_PACKAGE],
            settings.cli_install_timeout_ms,
            on_log=log,
            env=env,
        )

        cli = await get_cli_status(runner, settings.cli_bin)
        if cli.version:
            log(f"CLI version: {cli.version}")
        return {"version": cli.version}
