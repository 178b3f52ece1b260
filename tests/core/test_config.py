from relay_service.core.config import apply_env_overrides, deep_merge, load_settings, reload_settings


def test_deep_merge_overlays_nested_keys():
    base = {"app": {"api": {"host": "0.0.0.0", "port": 8080}}, "logging": {"level": "INFO"}}
    merged = deep_merge(base, {"app": {"api": {"port": 9000}}})
    assert merged["app"]["api"] == {"host": "0.0.0.0", "port": 9000}
    assert merged["logging"] == {"level": "INFO"}
    assert base["app"]["api"]["port"] == 8080


def test_env_overrides_are_yaml_parsed():
    cfg = {"limits": {"tool_timeout_sec": 30}}
    environ = {
        "RELAY__LIMITS__TOOL_TIMEOUT_SEC": "5",
        "RELAY__ORCHESTRATION__PASSTHROUGH_TOOLS": "[calculator]",
        "UNRELATED": "x",
    }
    out = apply_env_overrides(cfg, environ)
    assert out["limits"]["tool_timeout_sec"] == 5
    assert out["orchestration"]["passthrough_tools"] == ["calculator"]
    assert "unrelated" not in out


def test_packaged_defaults():
    settings = load_settings()
    assert settings["limits"]["tool_timeout_sec"] == 30
    assert "echo" in settings["providers"]
    assert "calculator" in settings["tools"]["enabled"]
    assert "calculator" not in settings["orchestration"]["passthrough_tools"]


def test_load_settings_returns_copies():
    first = load_settings()
    first["limits"]["tool_timeout_sec"] = 1
    assert load_settings()["limits"]["tool_timeout_sec"] == 30


def test_reload_picks_up_env(monkeypatch):
    monkeypatch.setenv("RELAY__LOGGING__LEVEL", "DEBUG")
    try:
        assert reload_settings()["logging"]["level"] == "DEBUG"
    finally:
        monkeypatch.delenv("RELAY__LOGGING__LEVEL")
        reload_settings()
