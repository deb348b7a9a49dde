"""CLI output JSON extraction tests."""

from clawmgr.services.cli_output import parse_json_from_cli_output


def test_plain_json():
    assert parse_json_from_cli_output('{"a": 1}') == {"a": 1}


def test_json_after_banner_lines():
    raw = "Clawdbot 2026.1.0\n[info] loading plugins\n{\n  \"requests\": [{\"code\": \"AB12\"}]\n}\n"
    assert parse_json_from_cli_output(raw) == {"requests": [{"code": "AB12"}]}


def test_trailing_array():
    assert parse_json_from_cli_output("warning: deprecated flag\n[\"*\"]") == ["*"]


def test_no_json_returns_none():
    assert parse_json_from_cli_output("nothing to see here\nreally") is None
    assert parse_json_from_cli_output("") is None
    assert parse_json_from_cli_output("   \n") is None
