"""Crypto skill installation into the agent's skills directory."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from clawmgr.process.runner import LogSink

logger = logging.getLogger(__name__)

KNOWN_SKILLS = {
    "bankr": {
        "version": "1.0.0",
        "description": "Crypto trading and management skill",
        "repository": "https://github.com/BankrBot/openclaw-skills",
    },
}


def install_skill(name: str, skills_dir: Path, log: LogSink) -> bool:
    """Install one skill. Returns False when there is no source for it."""
    source = KNOWN_SKILLS.get(name)
    if source is None:
        log(f"Warning: No installation source found for '{name}'. Skipping.")
        return False

    log(f"Source: {source['repository']}")
    skill_path = skills_dir / name
    if skill_path.exists():
        log(f"Skill {name} is already installed.")
        return True

    log(f"Creating skill directory at {skill_path}...")
    skill_path.mkdir(parents=True)
    manifest = {
        "name": name,
        "version": source["version"],
        "description": source["description"],
        "repository": source["repository"],
        "installedAt": datetime.now(timezone.utc).isoformat(),
    }
    (skill_path / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    log(f"Skill {name} installed successfully.")
    return True


def install_crypto_skills(skills: list[str], skills_dir: Path, log: LogSink) -> dict:
    log("Starting crypto skills installation...")
    names = [s.strip() for s in skills if s and s.strip()]
    if not names:
        log("No skills selected.")
        return {"installed": []}

    log(f"Selected skills: {', '.join(names)}")
    if not skills_dir.exists():
        log(f"Creating skills directory: {skills_dir}")
        skills_dir.mkdir(parents=True, exist_ok=True)

    installed = []
    for name in names:
        log(f"Installing skill: {name}...")
        if install_skill(name, skills_dir, log):
            installed.append(name)

    log("Skill installation process completed.")
    logger.info("Installed skills %s into %s", installed, skills_dir)
    return {"installed": installed}
