"""String enums shared by the job core and the API."""

from enum import StrEnum


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.FAILED)


class OnboardingStep(StrEnum):
    AUTH = "auth"
    CLI = "cli"
    GATEWAY = "gateway"
    TOKEN = "token"
    AI = "ai"
    PAIRING = "pairing"
    PROBE = "probe"
    COMPLETE = "complete"
