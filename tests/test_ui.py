"""
Tests for the optional web UI stage.
"""

import shutil
from pathlib import Path

import pytest
import yaml

from mihomo_installer.core.config.settings import InstallSettings
from mihomo_installer.core.services.provision.execution import ui
from mihomo_installer.core.services.provision.execution.config_writer import (
    materialize_config,
)


@pytest.fixture
def git_present(monkeypatch):
    real_which = shutil.which
    monkeypatch.setattr(ui.shutil, "which",
                        lambda name: "/usr/bin/git" if name == "git" else real_which(name))


@pytest.fixture
def clone_creates_dir(fake_runner):
    def create(cmd):
        target = Path(cmd[-1])
        target.mkdir(parents=True)
        (target / "index.html").write_text("<html></html>")
    fake_runner.on_call[("git", "clone")] = create
    return fake_runner


class TestCloneUi:
    def test_no_git_skips(self, paths, fake_runner, monkeypatch):
        monkeypatch.setattr(ui.shutil, "which", lambda name: None)
        receipt = ui.clone_ui(paths)
        assert receipt.skipped
        assert fake_runner.calls == []

    def test_clone_command(self, paths, git_present, clone_creates_dir):
        receipt = ui.clone_ui(paths)
        assert receipt.ok
        assert clone_creates_dir.calls == [[
            "git", "clone", "--depth", "1", "-b", "gh-pages",
            "https://github.com/MetaCubeX/metacubexd.git", str(paths.ui_dir),
        ]]
        assert clone_creates_dir.kwargs[0]["env_overrides"] == {"GIT_TERMINAL_PROMPT": "0"}
        assert (paths.ui_dir / "index.html").is_file()

    def test_replaces_previous_checkout(self, paths, git_present, clone_creates_dir):
        paths.ui_dir.mkdir(parents=True)
        (paths.ui_dir / "stale.js").write_text("old")
        ui.clone_ui(paths)
        assert not (paths.ui_dir / "stale.js").exists()

    def test_failure_is_soft(self, paths, git_present, fake_runner):
        fake_runner.fail(("git", "clone"), stderr="Could not resolve host")
        receipt = ui.clone_ui(paths)
        assert receipt.failed
        assert not paths.ui_dir.exists()


class TestInstallUi:
    def test_wires_config_and_restarts(self, paths, git_present, clone_creates_dir):
        materialize_config(InstallSettings(), paths)
        receipt = ui.install_ui(paths)
        assert receipt.ok
        assert receipt.metadata["config_changed"] is True
        assert receipt.metadata["restarted"] is True
        assert ["systemctl", "restart", "mihomo"] in clone_creates_dir.calls
        data = yaml.safe_load(paths.config_file.read_text())
        assert data["external-ui"] == "/etc/mihomo/ui"

    def test_rerun_leaves_config_alone(self, paths, git_present, clone_creates_dir):
        materialize_config(InstallSettings(install_ui=True), paths)
        before = paths.config_file.read_bytes()
        receipt = ui.install_ui(paths, restart=False)
        assert receipt.metadata["config_changed"] is False
        assert paths.config_file.read_bytes() == before
        assert "restarted" not in receipt.metadata
        assert clone_creates_dir.commands("systemctl") == []

    def test_missing_config_is_soft(self, paths, git_present, clone_creates_dir):
        receipt = ui.install_ui(paths, restart=False)
        assert receipt.failed
        assert "config not updated" in receipt.error

    def test_clone_failure_skips_config_edit(self, paths, git_present, fake_runner):
        materialize_config(InstallSettings(), paths)
        fake_runner.fail(("git", "clone"))
        receipt = ui.install_ui(paths)
        assert receipt.failed
        assert "external-ui" not in paths.config_file.read_text()
        assert fake_runner.commands("systemctl") == []
