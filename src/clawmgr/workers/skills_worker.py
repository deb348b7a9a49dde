"""Worker that installs crypto skills for the agent."""

from clawmgr.models.requests import SkillsRequest
from clawmgr.process.runner import LogSink
from clawmgr.services.skills import install_crypto_skills
from clawmgr.workers.base import JobWorker


class SkillsWorker(JobWorker):
    kind = "crypto_skills"
    label = "Install Crypto Skills"
    failure_prefix = "Error during installation"

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        request = SkillsRequest.model_validate(payload)
        return install_crypto_skills(request.skills, self.context.settings.effective_skills_dir, log)
