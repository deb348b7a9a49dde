"""Workers that approve Discord pairing codes."""

import asyncio
import logging
import time

from clawmgr.errors.exceptions import CommandError, JobPreconditionError
from clawmgr.models.requests import PairingRequest, PairingWaitRequest
from clawmgr.process.runner import LogSink
from clawmgr.services.discord import PAIRING_APPROVE_TIMEOUT_MS, pairing_approve_args
from clawmgr.services.onboarding import PAIRING_LIST_TIMEOUT_MS, pending_pairing_requests
from clawmgr.workers.base import JobWorker

logger = logging.getLogger(__name__)


def _request_code(request) -> str:
    code = request.get("code") if isinstance(request, dict) else None
    return str(code or "").strip().upper()


class PairingApproveWorker(JobWorker):
    """Approve one code supplied by the user. No retry."""

    kind = "discord_pairing"
    label = "Discord Pairing"
    failure_prefix = "Pairing failed"
    invalidates_onboarding = True

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        code = PairingRequest.model_validate(payload).code
        if not code:
            raise JobPreconditionError("missing code")

        log(f"Approving pairing code {code}...")
        await self.context.runner.run_with_logs(
            self.context.settings.cli_bin,
            pairing_approve_args(code),
            PAIRING_APPROVE_TIMEOUT_MS,
            on_log=log,
        )
        log("Pairing approved.")
        return {"code": code}


class PairingWaitWorker(JobWorker):
    """Poll for the first pending pairing request and approve it."""

    kind = "discord_pairing_wait"
    label = "Discord Pairing Wait"
    failure_prefix = "Pairing wait failed"
    invalidates_onboarding = True

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        request = PairingWaitRequest.model_validate(payload)
        settings = self.context.settings
        runner = self.context.runner
        cli_bin = settings.cli_bin
        timeout_ms = request.timeout_ms or settings.pairing_wait_timeout_ms
        poll_ms = request.poll_ms or settings.pairing_poll_ms

        log(f"Waiting for a pairing request (timeout {timeout_ms}ms)...")
        deadline = time.monotonic() + timeout_ms / 1000
        last_count: int | None = None
        polls = 0

        while True:
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            if remaining_ms <= 0:
                break
            polls += 1
            try:
                output = await runner.run(
                    cli_bin,
                    ["pairing", "list", "--channel", "discord", "--json"],
                    max(1, min(PAIRING_LIST_TIMEOUT_MS, remaining_ms)),
                )
            except (CommandError, OSError) as exc:
                log(f"Pairing list failed: {exc}")
            else:
                requests = pending_pairing_requests(output)
                if len(requests) != last_count:
                    last_count = len(requests)
                    log(f"Pending pairing requests: {last_count}")
                code = next((c for c in map(_request_code, requests) if c), "")
                if code:
                    log(f"Approving pairing code {code}...")
                    await runner.run_with_logs(
                        cli_bin,
                        pairing_approve_args(code, notify=request.notify),
                        PAIRING_APPROVE_TIMEOUT_MS,
                        on_log=log,
                    )
                    log("Pairing approved.")
                    return {"code": code}

            sleep_ms = min(poll_ms, int((deadline - time.monotonic()) * 1000))
            if sleep_ms <= 0:
                break
            await asyncio.sleep(sleep_ms / 1000)

        logger.info("Pairing wait timed out after %d polls", polls)
        raise TimeoutError("pairing timeout")
