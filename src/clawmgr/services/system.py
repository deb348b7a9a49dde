"""Local runtime and agent CLI presence checks."""

import logging
import platform
import shutil
import sys

from clawmgr.errors.exceptions import CommandError
from clawmgr.models.onboarding import CliStatus, RuntimeInfo
from clawmgr.process.runner import CommandRunner

logger = logging.getLogger(__name__)

_VERSION_TIMEOUT_MS = 2000


def get_runtime_info() -> RuntimeInfo:
    return RuntimeInfo(
        python=platform.python_version(),
        platform=sys.platform,
        arch=platform.machine(),
    )


async def get_cli_status(runner: CommandRunner, cli_bin: str = "clawdbot") -> CliStatus:
    """Report whether ``cli_bin`` is on PATH and, if so, its version."""
    path = shutil.which(cli_bin, path=runner.env.get("PATH"))
    if not path:
        return CliStatus(installed=False)

    try:
        output = await runner.run(path, ["--version"], _VERSION_TIMEOUT_MS)
        version = output.strip() or None
    except (CommandError, OSError) as exc:
        logger.debug("CLI version query failed: %s", exc)
        version = None
    return CliStatus(installed=True, path=path, version=version)
