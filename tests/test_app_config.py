"""Tests for application configuration loading and CLI overrides."""

import json

import pytest

from prepare_after_updater import app_config
from prepare_after_updater.app_config import AppConfig, apply_overrides, load_app_config, resolve_app_config
from prepare_after_updater.errors import ConfigError


def test_load_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "resource_url": "https://example.org/programs.json",
                "home_dir": "/srv/home",
                "log_path": "/tmp/pau.log",
                "exclude_prefixes": ["x_", "svc"],
            }
        ),
        encoding="utf-8",
    )
    cfg = load_app_config(str(path))
    assert cfg.resource_url == "https://example.org/programs.json"
    assert cfg.home_dir == "/srv/home"
    assert cfg.log_path == "/tmp/pau.log"
    assert cfg.exclude_prefixes == ("x_", "svc")


def test_load_yaml_with_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("resource_url: file:///opt/programs.json\nexclude_prefixes: 'a_, test'\n", encoding="utf-8")
    cfg = load_app_config(str(path))
    assert cfg.resource_url == "file:///opt/programs.json"
    assert cfg.home_dir == app_config.DEFAULT_HOME_DIR
    assert cfg.log_path == app_config.DEFAULT_LOG_PATH
    assert cfg.exclude_prefixes == ("a_", "test")


def test_empty_values_fall_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"home_dir": "", "exclude_prefixes": []}', encoding="utf-8")
    cfg = load_app_config(str(path))
    assert cfg.home_dir == "/home"
    assert cfg.exclude_prefixes == ("a_", "adminsec")


@pytest.mark.parametrize("content", ["[1, 2]", "{broken", '{"exclude_prefixes": 5}'])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_app_config(str(path))


def test_overrides_replace_file_values():
    cfg = apply_overrides(
        AppConfig(home_dir="/home", resource_url="https://a"),
        {"home_dir": "/srv", "exclude_prefixes": "x_,y_", "user": None, "resource_url": "", "all_users": False},
    )
    assert cfg.home_dir == "/srv"
    assert cfg.exclude_prefixes == ("x_", "y_")
    assert cfg.user == ""
    assert cfg.resource_url == "https://a"
    assert cfg.all_users is False


def test_explicit_config_must_exist(tmp_path):
    with pytest.raises(ConfigError):
        resolve_app_config(str(tmp_path / "missing.json"))


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.setattr(app_config, "DEFAULT_CONFIG_PATH", str(tmp_path / "absent.json"))
    cfg = resolve_app_config(None, {"user": "alice"})
    assert cfg == AppConfig(user="alice")


def test_default_config_file_is_used(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text('{"home_dir": "/srv/home"}', encoding="utf-8")
    monkeypatch.setattr(app_config, "DEFAULT_CONFIG_PATH", str(path))
    assert resolve_app_config().home_dir == "/srv/home"
