"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings

APP_VERSION = "0.1.0"

_STATE_DIR = Path.home() / ".blockclaw-manager"


class Settings(BaseSettings):
    # Server
    host: str = "127.0.0.1"
    port: int = 17321
    log_level: str = "info"
    json_logs: bool = False

    # CORS
    cors_allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5179",
        "http://127.0.0.1:5179",
    ]

    # Agent CLI
    repo_root: str | None = None
    cli_bin: str = "clawdbot"
    npm_bin: str = "npm"

    # Timeouts (milliseconds)
    cli_install_timeout_ms: int = 600_000
    ai_auth_timeout_ms: int = 120_000
    gateway_timeout_ms: int = 60_000
    discord_token_timeout_ms: int = 20_000
    discord_status_stale_ms: int = 30_000
    pairing_wait_timeout_ms: int = 120_000
    pairing_poll_ms: int = 2_000

    # Quickstart channel probe
    probe_attempts: int = 3
    probe_delay_ms: int = 2_000

    # Gateway defaults
    gateway_host: str = "127.0.0.1"
    gateway_port: int = 18789

    # Jobs
    job_retention: int = 200
    stream_keepalive_seconds: float = 15.0
    onboarding_cache_ms: int = 5_000

    # Resources and skills
    resource_url: str | None = None
    resource_dir: str | None = None
    skills_dir: str | None = None

    # Admin auth
    auth_disabled: bool = False
    admin_config_path: str = str(_STATE_DIR / "config.json")
    session_secret: str | None = None
    session_ttl_seconds: int = 7 * 24 * 3600
    session_cookie_name: str = "manager_session"
    session_algorithm: str = "HS256"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "MANAGER_",
    }

    @property
    def effective_repo_root(self) -> str:
        """Working directory for spawned commands."""
        if self.repo_root:
            return str(Path(self.repo_root).expanduser().resolve())
        return str(Path.cwd())

    @property
    def effective_resource_dir(self) -> Path:
        if self.resource_dir and self.resource_dir.strip():
            return Path(self.resource_dir.strip()).expanduser()
        return _STATE_DIR / "resources"

    @property
    def effective_skills_dir(self) -> Path:
        if self.skills_dir and self.skills_dir.strip():
            return Path(self.skills_dir.strip()).expanduser()
        return Path.home() / ".openclaw" / "skills"


settings = Settings()
