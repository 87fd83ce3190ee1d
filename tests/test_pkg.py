"""Tests for package manager detection, installation and database refresh."""

from types import SimpleNamespace

import pytest

from prepare_after_updater.errors import PackagesUndefinedForManager
from prepare_after_updater.lib import pkg
from prepare_after_updater.lib.command import ExecutionOutcome


def _available(monkeypatch, names):
    monkeypatch.setattr(pkg, "command_exists", lambda name: name in names)


@pytest.fixture
def recorded(monkeypatch):
    """Replace run_cmd; records argv and lets tests pick the exit code."""
    rec = SimpleNamespace(calls=[], returncode=0)

    def fake_run_cmd(argv):
        rec.calls.append(list(argv))
        rc = rec.returncode
        return ExecutionOutcome(argv=list(argv), succeeded=rc == 0, output=b"log line\n", returncode=rc)

    monkeypatch.setattr(pkg, "run_cmd", fake_run_cmd)
    return rec


@pytest.mark.parametrize(
    "installed, expected",
    [
        ({"apt", "apt-get", "dnf", "yum"}, "apt"),
        ({"apt-get", "yum"}, "apt-get"),
        ({"yum", "dnf"}, "dnf"),
        ({"yum"}, "yum"),
        (set(), None),
    ],
)
def test_detect_priority(monkeypatch, installed, expected):
    _available(monkeypatch, installed)
    assert pkg.detect_package_manager() == expected


def test_install_invocation_shape(recorded):
    result = pkg.install_packages("dnf", {"apt": "vim-nox", "dnf": "vim-enhanced  git"})
    assert result.succeeded
    assert recorded.calls == [["dnf", "install", "-y", "vim-enhanced", "git"]]


def test_install_undefined_for_manager(recorded):
    packages = {"apt": "vim git"}
    with pytest.raises(PackagesUndefinedForManager) as exc:
        pkg.install_packages("yum", packages)
    assert exc.value.manager == "yum"
    assert packages == {"apt": "vim git"}
    assert recorded.calls == []


def test_install_blank_package_list(recorded):
    with pytest.raises(PackagesUndefinedForManager):
        pkg.install_packages("apt", {"apt": "   "})
    assert recorded.calls == []


def test_install_failure_is_returned_not_raised(recorded):
    recorded.returncode = 100
    result = pkg.install_packages("apt", {"apt": "vim"})
    assert not result.succeeded


@pytest.mark.parametrize(
    "returncode, status",
    [
        (0, pkg.RefreshStatus.SUCCESS),
        (100, pkg.RefreshStatus.UPDATES_AVAILABLE),
        (1, pkg.RefreshStatus.FAILED),
    ],
)
def test_refresh_result(monkeypatch, recorded, returncode, status):
    _available(monkeypatch, {"yum"})
    recorded.returncode = returncode
    result = pkg.refresh_package_database()
    assert result.status is status
    assert result.manager == "yum"
    assert result.returncode == returncode
    assert recorded.calls == [["yum", "check-update"]]
    assert result.ok is (status is not pkg.RefreshStatus.FAILED)


def test_refresh_prefers_apt_get(monkeypatch, recorded):
    _available(monkeypatch, {"apt", "apt-get"})
    pkg.refresh_package_database()
    assert recorded.calls == [["apt-get", "update"]]


def test_refresh_without_manager(monkeypatch, recorded):
    _available(monkeypatch, set())
    result = pkg.refresh_package_database()
    assert result.status is pkg.RefreshStatus.FAILED
    assert result.manager is None
    assert recorded.calls == []
