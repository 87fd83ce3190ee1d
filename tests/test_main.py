"""End-to-end tests for the command line entrypoint."""

import json
import os

import pytest

from prepare_after_updater import __version__, main
from prepare_after_updater.app_config import AppConfig
from prepare_after_updater.errors import FetchError
from prepare_after_updater.manifest import generate_template, load_manifest


@pytest.fixture
def quiet(monkeypatch):
    """Root privileges, no log files, no package database refresh."""
    refreshes = []
    monkeypatch.setattr(main, "configure_logging", lambda **kw: kw.get("log_path"))
    monkeypatch.setattr(main, "_is_root", lambda: True)
    monkeypatch.setattr(main, "refresh_package_database", lambda: refreshes.append(1))
    return refreshes


def _manifest(path, programs):
    path.write_text(json.dumps({"programs": programs}), encoding="utf-8")
    return path


def test_version(capsys):
    assert main.main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_autoconfig_writes_template(tmp_path, capsys):
    target = tmp_path / "template.json"
    assert main.main(["--autoconfig", str(target)]) == 0
    assert load_manifest(str(target)) == generate_template()
    assert str(target) in capsys.readouterr().out


def test_requires_root(monkeypatch, quiet):
    monkeypatch.setattr(main, "_is_root", lambda: False)
    assert main.main([]) == 1
    assert quiet == []


def test_bad_config_is_fatal(tmp_path, quiet):
    bad = tmp_path / "config.json"
    bad.write_text("[]", encoding="utf-8")
    assert main.main(["--config", str(bad)]) == 1
    assert quiet == []


def test_process_user_without_url(home):
    assert main.process_user(str(home), AppConfig()) is None


def test_process_user_removes_downloaded_manifest(home, tmp_path):
    src = _manifest(tmp_path / "programs.json", [])
    cfg = AppConfig(resource_url=f"file://{src}")
    summary = main.process_user(str(home), cfg)
    assert summary.reports == ()
    assert not (home / cfg.download_name).exists()


def test_process_user_ignores_planted_symlink(home, tmp_path):
    victim = tmp_path / "victim"
    victim.write_text("SECRET", encoding="utf-8")
    marker = tmp_path / "marker"
    (home / ".rc").write_text("", encoding="utf-8")
    src = _manifest(tmp_path / "programs.json", [{"name": "p", "config_paths": [".rc"], "command": f"touch {marker}"}])
    cfg = AppConfig(resource_url=f"file://{src}")
    (home / cfg.download_name).symlink_to(victim)

    summary = main.process_user(str(home), cfg)

    assert victim.read_text(encoding="utf-8") == "SECRET"
    assert [r.name for r in summary.reports] == ["p"]
    assert marker.exists()
    assert not os.path.lexists(home / cfg.download_name)


def test_run_reports_fetch_failure(tmp_path, home, quiet, monkeypatch):
    def fail(url, dst):
        raise FetchError("offline")

    monkeypatch.setattr(main, "fetch_manifest", fail)
    cfg = AppConfig(home_dir=str(home.parent), user="alice", resource_url="https://example.org/p.json")
    assert main.run(cfg) == 1
    assert quiet == [1]


def test_full_run(tmp_path, home, quiet):
    (home / ".toolrc").write_text("", encoding="utf-8")
    marker = tmp_path / "post-action-ran"
    src = _manifest(
        tmp_path / "programs.json",
        [
            {"name": "broken", "action": "frobnicate"},
            {
                "name": "tool",
                "config_paths": [".missing", ".toolrc"],
                "command": "true",
                "post_action": ["false", f"touch {marker}"],
            },
        ],
    )
    config = tmp_path / "config.json"
    config.write_text(
        json.dumps({"resource_url": f"file://{src}", "home_dir": str(home.parent)}),
        encoding="utf-8",
    )

    assert main.main(["--config", str(config), "--user", "alice", "--log", str(tmp_path / "run.log")]) == 0
    assert marker.exists()
    assert quiet == [1]
