"""Read-only access to the agent's persisted JSON5 configuration file."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import json5

CONFIG_FILENAME = "blockclaw.json"
STATE_DIRS = (".blockclaw-manager",)

_ENV_REF = re.compile(r"^\$\{([A-Z0-9_]+)\}$")


@dataclass
class ConfigSnapshot:
    path: str
    ok: bool
    config: Any = None
    reason: Literal["missing", "read", "parse"] | None = None
    error: str | None = None


def _first_set(env: Mapping[str, str], *keys: str) -> str | None:
    for key in keys:
        value = (env.get(key) or "").strip()
        if value:
            return value
    return None


def resolve_config_candidates(env: Mapping[str, str] | None = None) -> list[Path]:
    env = os.environ if env is None else env
    explicit = _first_set(env, "BLOCKCLAW_CONFIG_PATH", "OPENCLAW_CONFIG_PATH")
    if explicit:
        return [Path(explicit).expanduser().resolve()]

    state_override = _first_set(env, "BLOCKCLAW_STATE_DIR", "OPENCLAW_STATE_DIR")
    if state_override:
        state_dirs = [Path(state_override).expanduser().resolve()]
    else:
        state_dirs = [Path.home() / name for name in STATE_DIRS]
    return [state_dir / CONFIG_FILENAME for state_dir in state_dirs]


def resolve_config_path(env: Mapping[str, str] | None = None) -> Path:
    candidates = resolve_config_candidates(env)
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def read_config_snapshot(env: Mapping[str, str] | None = None) -> ConfigSnapshot:
    path = resolve_config_path(env)
    if not path.exists():
        return ConfigSnapshot(path=str(path), ok=False, reason="missing", error="config not found")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        return ConfigSnapshot(path=str(path), ok=False, reason="read", error=str(exc))
    try:
        config = json5.loads(raw)
    except ValueError as exc:
        return ConfigSnapshot(path=str(path), ok=False, reason="parse", error=str(exc))
    return ConfigSnapshot(path=str(path), ok=True, config=config)


def get_path_value(root: Any, path: Sequence[str]) -> Any:
    """Walk nested mappings by key; None when any segment is missing."""
    current = root
    for segment in path:
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]
    return current


def resolve_env_ref(raw: str, env: Mapping[str, str] | None = None) -> str:
    """Expand a whole-value ``${VAR}`` placeholder; other strings pass through."""
    env = os.environ if env is None else env
    trimmed = raw.strip()
    match = _ENV_REF.match(trimmed)
    if not match:
        return trimmed
    return (env.get(match.group(1)) or "").strip()


def resolve_discord_token(config: Any, env: Mapping[str, str] | None = None) -> str | None:
    direct = get_path_value(config, ["channels", "discord", "token"])
    if isinstance(direct, str):
        return resolve_env_ref(direct, env)

    accounts = get_path_value(config, ["channels", "discord", "accounts"])
    if isinstance(accounts, dict):
        for account in accounts.values():
            token = get_path_value(account, ["token"])
            if isinstance(token, str):
                resolved = resolve_env_ref(token, env)
                if resolved:
                    return resolved
    return None


def discord_allow_from_configured(config: Any) -> bool:
    value = get_path_value(config, ["channels", "discord", "dm", "allowFrom"])
    return isinstance(value, list) and len(value) > 0
