"""
Tests for the API handed to packages and the background refresh loop.
"""

import asyncio

import pytest

from conftest import RecordingHost, package_entry
from powerspoons.package.api import ManagerAPI
from powerspoons.storage.secrets import SecretStore
from powerspoons.storage.settings import PackageSettingsStore
from spoons.commands.daemon import refresh_loop


class BrokenHost(RecordingHost):
    def notify(self, title, text="", **options):
        raise RuntimeError("no display")


class TestManagerAPI:
    """Test the capability surface exposed to package code."""

    def test_secrets_and_settings(self, tmp_path):
        """Should read and write secrets and per-package settings."""
        api = ManagerAPI(
            SecretStore(tmp_path / "secrets.json"),
            PackageSettingsStore(tmp_path / "settings"),
            RecordingHost(),
        )

        assert api.set_secret("KEY", "value") is True
        assert api.get_secret("KEY") == "value"

        assert api.set_settings("p1", {"a": 1}) is True
        assert api.set_setting("p1", "b", 2) is True
        assert api.get_settings("p1") == {"a": 1, "b": 2}
        assert api.get_setting("p2", "a", "none") == "none"

    def test_failed_write_returns_false(self, tmp_path):
        """Write failures should be reported as False, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        api = ManagerAPI(
            SecretStore(blocker / "secrets.json"),
            PackageSettingsStore(blocker / "settings"),
            RecordingHost(),
        )

        assert api.set_secret("KEY", "value") is False
        assert api.set_setting("p1", "k", 1) is False
        assert api.set_settings("p1", {}) is False

    def test_notify_and_sound(self, tmp_path):
        """Should forward notifications and sounds to the host."""
        host = RecordingHost()
        api = ManagerAPI(
            SecretStore(tmp_path / "secrets.json"),
            PackageSettingsStore(tmp_path / "settings"),
            host,
        )

        api.notify("Trimmy", "Trimmed 3 lines", {"sound": "pop"})
        api.play_sound("done")

        assert host.notifications == [("Trimmy", "Trimmed 3 lines")]
        assert host.sounds == ["done"]

    def test_host_failure_is_contained(self, tmp_path):
        """A failing host should not raise into package code."""
        api = ManagerAPI(
            SecretStore(tmp_path / "secrets.json"),
            PackageSettingsStore(tmp_path / "settings"),
            BrokenHost(),
        )
        api.notify("Title", "Text")

    def test_log_uses_package_logger(self, tmp_path, caplog):
        """Package log lines should go to a per-package logger."""
        api = ManagerAPI(
            SecretStore(tmp_path / "secrets.json"),
            PackageSettingsStore(tmp_path / "settings"),
            RecordingHost(),
        )
        with caplog.at_level("INFO", logger="powerspoons.packages"):
            api.log("p1", "hello")

        assert any(
            record.name == "powerspoons.packages.p1" and record.message == "hello"
            for record in caplog.records
        )


class TestRefreshLoop:
    """Test the daemon's periodic refresh."""

    @pytest.mark.asyncio
    async def test_loop_refreshes_when_due(self, controller, remote):
        """The loop should fetch the manifest once it is due and stop on cancel."""
        remote.publish([package_entry("p1")])

        task = asyncio.create_task(refresh_loop(controller, check_interval=0))
        for _ in range(1000):
            if controller.registry.manifest is not None:
                break
            await asyncio.sleep(0)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert controller.registry.get_definition("p1") is not None
        assert task.done()
