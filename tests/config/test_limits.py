import pytest
import yaml
from pydantic import ValidationError

from mediakeeper.config.environment import Environment
from mediakeeper.config.limits import LifecycleLimits


def test_defaults():
    limits = LifecycleLimits()
    assert limits.max_active_resources == 3
    assert limits.max_loops_before_reload == 10
    assert limits.max_memory_threshold_mb == 800
    assert limits.inactivity_threshold == 60
    assert limits.stale_threshold == 300
    assert limits.maintenance_interval == 30
    assert limits.reload_delay == pytest.approx(0.1)
    assert limits.min_footprint_mb == 50


def test_from_environment_defaults():
    assert LifecycleLimits.from_environment() == LifecycleLimits()


def test_from_environment_reads_env(monkeypatch):
    monkeypatch.setenv("MEDIA_MAX_ACTIVE_RESOURCES", "5")
    monkeypatch.setenv("MEDIA_STALE_SECONDS", "120.5")
    Environment.reset()

    limits = LifecycleLimits.from_environment()

    assert limits.max_active_resources == 5
    assert limits.stale_threshold == pytest.approx(120.5)


def test_from_environment_ignores_garbage(monkeypatch):
    monkeypatch.setenv("MEDIA_MAX_LOOPS_BEFORE_RELOAD", "many")
    Environment.reset()

    assert LifecycleLimits.from_environment().max_loops_before_reload == 10


def test_settings_file_is_read(tmp_path):
    (tmp_path / "settings.yaml").write_text(yaml.dump({"MEDIA_MAX_MEMORY_MB": 1200}))
    Environment.reset()

    assert LifecycleLimits.from_environment().max_memory_threshold_mb == 1200


def test_rejects_non_positive_cap():
    with pytest.raises(ValidationError):
        LifecycleLimits(max_active_resources=0)


def test_to_settings_round_trips_through_settings_file(tmp_path):
    limits = LifecycleLimits(max_active_resources=6, reload_delay=0.5)
    (tmp_path / "settings.yaml").write_text(yaml.dump(limits.to_settings()))
    Environment.reset()

    loaded = LifecycleLimits.from_environment()

    assert loaded.max_active_resources == 6
    assert loaded.reload_delay == pytest.approx(0.5)
