"""Admin authentication: scrypt credentials file, Basic auth and JWT session cookies."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from jose import JWTError, jwt

from clawmgr.config import Settings
from clawmgr.errors.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 64


@dataclass(frozen=True)
class AdminCredentials:
    username: str
    salt: str
    hash: str


def hash_password(password: str, salt: str) -> str:
    """Base64 scrypt digest of ``password``; ``salt`` is used as its UTF-8 bytes."""
    digest = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_KEY_LENGTH,
    )
    return base64.b64encode(digest).decode("ascii")


def new_admin_config(username: str, password: str) -> dict:
    salt = base64.b64encode(secrets.token_bytes(16)).decode("ascii")
    return {
        "auth": {"username": username, "salt": salt, "hash": hash_password(password, salt)},
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }


def load_admin_credentials(path: Path) -> AdminCredentials | None:
    """Read ``{auth: {username, salt, hash}}``; None when absent or malformed."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Admin config %s unreadable: %s", path, exc)
        return None

    auth = raw.get("auth") if isinstance(raw, dict) else None
    if not isinstance(auth, dict):
        return None
    fields = [auth.get(key) for key in ("username", "salt", "hash")]
    if not all(isinstance(value, str) and value for value in fields):
        return None
    return AdminCredentials(*fields)


def verify_credentials(credentials: AdminCredentials, username: str, password: str) -> bool:
    if not hmac.compare_digest(username.encode("utf-8"), credentials.username.encode("utf-8")):
        return False
    return hmac.compare_digest(hash_password(password, credentials.salt), credentials.hash)


def parse_basic_header(header: str) -> tuple[str, str] | None:
    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class AuthService:
    """Admin auth state derived from the credentials file on each call.

    The file is re-read so credentials written after startup take effect
    without a restart.
    """

    def __init__(
        self,
        config_path: Path,
        disabled: bool = False,
        session_secret: str | None = None,
        session_ttl_seconds: int = 7 * 24 * 3600,
        algorithm: str = "HS256",
        cookie_name: str = "manager_session",
    ) -> None:
        self.config_path = config_path
        self.cookie_name = cookie_name
        self.disabled = disabled
        self.session_ttl_seconds = session_ttl_seconds
        self._session_secret = session_secret
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthService:
        return cls(
            config_path=Path(settings.admin_config_path).expanduser(),
            disabled=settings.auth_disabled,
            session_secret=settings.session_secret,
            session_ttl_seconds=settings.session_ttl_seconds,
            algorithm=settings.session_algorithm,
            cookie_name=settings.session_cookie_name,
        )

    def credentials(self) -> AdminCredentials | None:
        return load_admin_credentials(self.config_path)

    def _secret(self, credentials: AdminCredentials | None) -> str | None:
        # Without an explicit secret, sessions are keyed to the stored hash so a
        # password change invalidates them.
        if self._session_secret:
            return self._session_secret
        return credentials.hash if credentials else None

    def create_session_token(self, username: str) -> str | None:
        secret = self._secret(self.credentials())
        if not secret:
            return None
        now = datetime.now(timezone.utc)
        payload = {
            "sub": username,
            "iat": now,
            "exp": now + timedelta(seconds=self.session_ttl_seconds),
            "type": "session",
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def verify_session_token(self, token: str, credentials: AdminCredentials | None = None) -> str | None:
        """Return the session's username, or None when invalid or expired."""
        credentials = credentials or self.credentials()
        secret = self._secret(credentials)
        if not secret or not token:
            return None
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Session token rejected: %s", exc)
            return None
        if payload.get("type") != "session":
            return None
        return payload.get("sub") or None

    def authenticate(self, header: str | None, session_token: str | None) -> str | None:
        """Username for a valid Basic header or session cookie, else None."""
        if self.disabled:
            return "admin"
        credentials = self.credentials()
        if credentials is None:
            return None
        if header:
            parsed = parse_basic_header(header)
            if parsed and verify_credentials(credentials, *parsed):
                return parsed[0]
        if session_token:
            return self.verify_session_token(session_token, credentials)
        return None

    def status(self) -> dict:
        return {
            "required": not self.disabled,
            "configured": False if self.disabled else self.credentials() is not None,
        }

    def session(self, header: str | None, session_token: str | None) -> dict:
        if self.disabled:
            return {"authenticated": True, "disabled": True, "required": False, "configured": False}
        return {
            "authenticated": self.authenticate(header, session_token) is not None,
            "required": True,
            "configured": self.credentials() is not None,
        }

    def login(self, username: str, password: str) -> str | None:
        """Check credentials and return a session token (None when auth is disabled).

        Raises:
            ValidationError: auth is not configured or credentials are missing.
            AuthenticationError: the credentials do not match.
        """
        if self.disabled:
            return None
        credentials = self.credentials()
        if credentials is None:
            raise ValidationError("auth not configured")
        if not username or not password:
            raise ValidationError("missing credentials")
        if not verify_credentials(credentials, username, password):
            logger.warning("Failed admin login for user '%s'", username)
            raise AuthenticationError("invalid credentials")
        return self.create_session_token(username)
