"""Tests for settings and the configuration file."""

from pathlib import Path

from rssr.config import (
    DEFAULT_API_KEY,
    EXAMPLE_CONFIG_FILE,
    Settings,
    ensure_config_file,
    read_config,
)
from rssr.feed_list import FeedList


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("RSSR_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("RSSR_SYNC_URL", "http://relay.example:8080")
    monkeypatch.setenv("RSSR_POLL_INTERVAL", "60")
    monkeypatch.setenv("RSSR_MODEL", "claude-test")
    monkeypatch.delenv("RSSR_API_KEY", raising=False)

    settings = Settings.from_env()

    assert settings.config_path == tmp_path / "urls.yaml"
    assert settings.sync_url == "http://relay.example:8080"
    assert settings.poll_interval == 60
    assert settings.api_key == DEFAULT_API_KEY
    assert settings.model == "claude-test"


def test_ensure_config_file_writes_example_once(tmp_path):
    path = tmp_path / "nested" / "urls.yaml"

    assert ensure_config_file(path) is True
    path.write_text("Fun:\n  - https://fun.example/feed.xml\n")
    assert ensure_config_file(path) is False
    assert "fun.example" in path.read_text()


def test_example_config_loads_to_no_feeds():
    feed_list = FeedList()

    assert feed_list.load_from_configuration(EXAMPLE_CONFIG_FILE) == 0
    assert feed_list.categories() == []


def test_read_missing_config(tmp_path):
    assert read_config(Path(tmp_path) / "missing.yaml") == ""
