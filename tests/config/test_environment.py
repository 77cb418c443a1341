from mediakeeper.config.environment import Environment


def test_log_level_prefers_log_level_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert Environment.get_log_level() == "WARNING"


def test_debug_env_enables_debug_level(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("DEBUG", "1")
    assert Environment.get_log_level() == "DEBUG"


def test_get_falls_back_to_defaults(monkeypatch):
    monkeypatch.delenv("MEDIA_RELOAD_DELAY", raising=False)
    assert Environment.get_float("MEDIA_RELOAD_DELAY", 1.0) == 0.1
    assert Environment.get("UNKNOWN_KEY", "fallback") == "fallback"


def test_has_settings_follows_config_dir(tmp_path):
    assert not Environment.has_settings()

    (tmp_path / "settings.yaml").write_text("MEDIA_MAX_ACTIVE_RESOURCES: 4\n")

    assert Environment.has_settings()
