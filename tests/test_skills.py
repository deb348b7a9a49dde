"""Crypto skill installation tests."""

import json

from clawmgr.services.skills import install_crypto_skills


def test_known_skill_gets_manifest(tmp_path):
    lines: list[str] = []
    skills_dir = tmp_path / "skills"

    result = install_crypto_skills(["bankr"], skills_dir, lines.append)

    assert result == {"installed": ["bankr"]}
    manifest = json.loads((skills_dir / "bankr" / "manifest.json").read_text())
    assert manifest["name"] == "bankr"
    assert manifest["repository"].startswith("https://github.com/")
    assert "installedAt" in manifest


def test_unknown_skill_is_skipped_with_warning(tmp_path):
    lines: list[str] = []
    result = install_crypto_skills(["bankr", "mystery"], tmp_path, lines.append)
    assert result == {"installed": ["bankr"]}
    assert any("Warning" in line and "mystery" in line for line in lines)
    assert not (tmp_path / "mystery").exists()


def test_already_installed_is_reported(tmp_path):
    install_crypto_skills(["bankr"], tmp_path, lambda line: None)
    lines: list[str] = []
    result = install_crypto_skills(["bankr"], tmp_path, lines.append)
    assert result == {"installed": ["bankr"]}
    assert any("already installed" in line for line in lines)


def test_empty_selection(tmp_path):
    lines: list[str] = []
    assert install_crypto_skills([], tmp_path / "skills", lines.append) == {"installed": []}
    assert "No skills selected." in lines
    assert not (tmp_path / "skills").exists()
