"""Agent configuration file reader tests."""

from clawmgr.services.agent_config import (
    discord_allow_from_configured,
    get_path_value,
    read_config_snapshot,
    resolve_config_path,
    resolve_discord_token,
    resolve_env_ref,
)


def test_explicit_config_path_wins(tmp_path):
    explicit = tmp_path / "custom.json"
    env = {"BLOCKCLAW_CONFIG_PATH": str(explicit), "BLOCKCLAW_STATE_DIR": str(tmp_path / "state")}
    assert resolve_config_path(env) == explicit.resolve()


def test_state_dir_override(tmp_path):
    env = {"OPENCLAW_STATE_DIR": str(tmp_path)}
    assert resolve_config_path(env) == tmp_path.resolve() / "blockclaw.json"


def test_missing_config(tmp_path):
    snapshot = read_config_snapshot({"BLOCKCLAW_STATE_DIR": str(tmp_path)})
    assert not snapshot.ok
    assert snapshot.reason == "missing"


def test_json5_config_is_parsed(tmp_path):
    (tmp_path / "blockclaw.json").write_text(
        "{\n  // comments and trailing commas are allowed\n  channels: {discord: {token: 'abc',},},\n}\n"
    )
    snapshot = read_config_snapshot({"BLOCKCLAW_STATE_DIR": str(tmp_path)})
    assert snapshot.ok
    assert get_path_value(snapshot.config, ["channels", "discord", "token"]) == "abc"


def test_unparseable_config(tmp_path):
    (tmp_path / "blockclaw.json").write_text("{ not json")
    snapshot = read_config_snapshot({"BLOCKCLAW_STATE_DIR": str(tmp_path)})
    assert not snapshot.ok
    assert snapshot.reason == "parse"


def test_get_path_value_missing_segment():
    assert get_path_value({"a": {"b": 1}}, ["a", "c"]) is None
    assert get_path_value({"a": 1}, ["a", "b"]) is None


def test_env_ref_resolution():
    env = {"DISCORD_TOKEN": " secret "}
    assert resolve_env_ref("${DISCORD_TOKEN}", env) == "secret"
    assert resolve_env_ref("${UNSET_VAR}", env) == ""
    assert resolve_env_ref("literal", env) == "literal"
    assert resolve_env_ref("prefix-${DISCORD_TOKEN}", env) == "prefix-${DISCORD_TOKEN}"


def test_discord_token_from_accounts():
    config = {"channels": {"discord": {"accounts": {"main": {"token": "${BOT}"}, "alt": {}}}}}
    assert resolve_discord_token(config, {"BOT": "tok"}) == "tok"
    assert resolve_discord_token(config, {}) is None


def test_allow_from_configured():
    assert discord_allow_from_configured({"channels": {"discord": {"dm": {"allowFrom": ["*"]}}}})
    assert not discord_allow_from_configured({"channels": {"discord": {"dm": {"allowFrom": []}}}})
    assert not discord_allow_from_configured({})
