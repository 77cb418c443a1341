import yaml
from click.testing import CliRunner

from mediakeeper.cli import cli


def test_simulate_evicts_and_reloads(monkeypatch):
    monkeypatch.setenv("MEDIA_RELOAD_DELAY", "0.01")
    runner = CliRunner()

    result = runner.invoke(cli, ["simulate", "--count", "4", "--loops", "10"])

    assert result.exit_code == 0, result.output
    assert "evicted: clip-0.mp4" in result.output
    assert "After reload delay" in result.output


def test_simulate_with_larger_cap(monkeypatch):
    monkeypatch.setenv("MEDIA_RELOAD_DELAY", "0.01")
    runner = CliRunner()

    result = runner.invoke(cli, ["simulate", "--count", "2", "--loops", "1", "--cap", "5"])

    assert result.exit_code == 0, result.output
    assert "evicted: none" in result.output


def test_stats_shows_limits():
    runner = CliRunner()

    result = runner.invoke(cli, ["stats"])

    assert result.exit_code == 0, result.output
    assert "max_active_resources" in result.output
    assert "Used:" in result.output


def test_simulate_rejects_zero_cap():
    runner = CliRunner()

    result = runner.invoke(cli, ["simulate", "--count", "2", "--cap", "0"])

    assert result.exit_code == 2
    assert "--cap" in result.output


def test_stats_save_persists_limits(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDIA_MAX_ACTIVE_RESOURCES", "5")
    (tmp_path / "settings.yaml").write_text(yaml.dump({"OTHER_KEY": "kept"}))
    runner = CliRunner()

    result = runner.invoke(cli, ["stats", "--save"])

    assert result.exit_code == 0, result.output
    saved = yaml.safe_load((tmp_path / "settings.yaml").read_text())
    assert saved["MEDIA_MAX_ACTIVE_RESOURCES"] == 5
    assert saved["MEDIA_RELOAD_DELAY"] == 0.1
    assert saved["OTHER_KEY"] == "kept"
