"""Request bodies accepted by the API and the job workers."""

from pydantic import field_validator

from clawmgr.models.common import CamelModel


def _positive_int_or_none(value) -> int | None:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


class ProcessActionRequest(CamelModel):
    id: str = ""


class DiscordTokenRequest(CamelModel):
    token: str = ""


class PairingRequest(CamelModel):
    code: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value):
        return str(value or "").strip().upper()


class PairingWaitRequest(CamelModel):
    """Unset or non-positive timings fall back to the configured defaults."""

    timeout_ms: int | None = None
    poll_ms: int | None = None
    notify: bool = False

    @field_validator("timeout_ms", "poll_ms", mode="before")
    @classmethod
    def _lenient_positive_int(cls, value):
        return _positive_int_or_none(value)


class DownloadRequest(CamelModel):
    url: str | None = None
    filename: str | None = None


class AiAuthRequest(CamelModel):
    provider: str = ""
    api_key: str = ""


class SkillsRequest(CamelModel):
    skills: list[str] = []


class LoginRequest(CamelModel):
    username: str = ""
    password: str = ""
