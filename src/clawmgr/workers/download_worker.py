"""Worker that downloads the bundled resource archive."""

from clawmgr.errors.exceptions import JobPreconditionError
from clawmgr.models.requests import DownloadRequest
from clawmgr.process.runner import LogSink
from clawmgr.services.resources import download_resource
from clawmgr.workers.base import JobWorker


class DownloadWorker(JobWorker):
    kind = "resource_download"
    label = "Download Resources"
    failure_prefix = "Download failed"

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        settings = self.context.settings
        request = DownloadRequest.model_validate(payload)
        url = (request.url or settings.resource_url or "").strip()
        if not url:
            log("No resource URL configured.")
            raise JobPreconditionError("resource url missing")

        return await download_resource(
            url,
            settings.effective_resource_dir,
            log,
            filename=request.filename,
            client=self.context.http_client,
        )
