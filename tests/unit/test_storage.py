"""
Tests for the persistence layer.

This test suite covers:
1. JSON document read/write (missing, malformed, write failures)
2. Manager state flags and the enabled => installed invariant
3. Secrets and secret masking
4. Per-package settings isolation and persistence
5. Legacy settings migration
"""

import json
import tempfile
from pathlib import Path

import pytest

from powerspoons.errors import OpenFailed, StorageError, WriteFailed
from powerspoons.storage.documents import read_document, remove_file, write_document
from powerspoons.storage.migration import (
    LEGACY_STATE_KEY,
    LegacySettingsFile,
    migrate_legacy_settings,
)
from powerspoons.storage.secrets import SecretStore, mask_secret
from powerspoons.storage.settings import PackageSettingsStore, safe_file_stem
from powerspoons.storage.state import ManagerState, PackageFlags, StateStore


class TestDocuments:
    """Test JSON document primitives."""

    def test_read_missing_returns_default(self):
        """Should return the default for a missing file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert read_document(Path(tmpdir) / "missing.json", {"a": 1}) == {"a": 1}

    def test_read_malformed_returns_default(self):
        """Should return the default for malformed JSON."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.json"
            path.write_text("{ not json")
            assert read_document(path, {}) == {}

    def test_read_non_object_returns_default(self):
        """Should return the default when the JSON is not an object."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "list.json"
            path.write_text("[1, 2, 3]")
            assert read_document(path, {"x": True}) == {"x": True}

    def test_read_empty_returns_default(self):
        """Should treat an empty file like a missing one."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.json"
            path.write_text("")
            assert read_document(path, {}) == {}

    def test_default_is_not_aliased(self):
        """Mutating a returned default should not change the caller's default."""
        default = {"packages": {}}
        with tempfile.TemporaryDirectory() as tmpdir:
            doc = read_document(Path(tmpdir) / "missing.json", default)
            doc["packages"]["p1"] = {}
        assert default == {"packages": {}}

    def test_write_creates_directory(self):
        """Should create missing parent directories on write."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "nested" / "dir" / "doc.json"
            write_document(path, {"k": "v"})
            assert json.loads(path.read_text()) == {"k": "v"}

    def test_corrupt_file_heals_on_write(self):
        """A malformed document should be replaced by the next write."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "doc.json"
            path.write_text("garbage")
            doc = read_document(path, {})
            doc["fixed"] = True
            write_document(path, doc)
            assert read_document(path, {}) == {"fixed": True}

    def test_write_unserializable_fails(self):
        """Should report WriteFailed for values JSON cannot encode."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(WriteFailed, match="Failed to encode JSON"):
                write_document(Path(tmpdir) / "doc.json", {"bad": object()})

    def test_write_directory_cannot_be_ensured(self):
        """Should report WriteFailed when the parent path is a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "blocker"
            blocker.write_text("")
            with pytest.raises(WriteFailed):
                write_document(blocker / "doc.json", {})

    def test_write_open_failure(self):
        """Should report OpenFailed when the target is a directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "doc.json"
            target.mkdir()
            with pytest.raises(OpenFailed):
                write_document(target, {})

    def test_remove_file(self):
        """Should remove existing files and report missing ones."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "file.py"
            path.write_text("x = 1")
            assert remove_file(path) is True
            assert remove_file(path) is False


class TestManagerState:
    """Test manager state persistence."""

    def test_default_state(self):
        """Should load defaults when no state file exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = StateStore(Path(tmpdir) / "state.json")
            assert store.state.version == 1
            assert store.state.manifest is None
            assert store.state.last_refresh == 0.0
            assert store.state.packages == {}

    def test_enabled_implies_installed_on_load(self):
        """Should drop enabled for entries that are not installed."""
        flags = PackageFlags.from_dict({"installed": False, "enabled": True})
        assert flags.enabled is False
        assert flags.installed is False

    def test_roundtrip(self):
        """Should persist flags, manifest and refresh time."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            store = StateStore(path)
            store.set_manifest({"packages": []})
            store.mark_installed("p1", "3")
            store.save()

            reloaded = StateStore(path)
            assert reloaded.state.manifest == {"packages": []}
            assert reloaded.state.last_refresh > 0
            flags = reloaded.get_flags("p1")
            assert flags.installed and flags.enabled
            assert flags.version == "3"
            assert flags.last_updated > 0

    def test_garbage_fields_are_normalized(self):
        """Should replace wrongly-typed fields with defaults."""
        state = ManagerState.from_dict(
            {"manifest": "nope", "lastRefresh": "yesterday", "packages": {"p1": 5}}
        )
        assert state.manifest is None
        assert state.last_refresh == 0.0
        assert state.packages == {}

    def test_set_enabled_never_enables_uninstalled(self):
        """set_enabled should respect the installed flag."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = StateStore(Path(tmpdir) / "state.json")
            store.state.packages["p1"] = PackageFlags(installed=False)
            flags = store.set_enabled("p1", True)
            assert flags.enabled is False

    def test_json_layout(self):
        """The document should use the documented keys."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "state.json"
            store = StateStore(path)
            store.mark_installed("p1", "1")
            store.save()
            data = json.loads(path.read_text())
            assert set(data) == {"version", "manifest", "lastRefresh", "packages"}
            assert set(data["packages"]["p1"]) == {
                "installed",
                "enabled",
                "version",
                "lastUpdated",
            }


class TestSecrets:
    """Test secret storage."""

    def test_set_get_clear(self):
        """Should store, read and clear secrets."""
        with tempfile.TemporaryDirectory() as tmpdir:
            secrets = SecretStore(Path(tmpdir) / "secrets.json")
            assert secrets.get("api_key") is None

            secrets.set("api_key", "sk-123456")
            assert secrets.get("api_key") == "sk-123456"

            secrets.set("api_key", "")
            assert secrets.get("api_key") is None

            secrets.set("other", "x")
            secrets.set("other", None)
            assert secrets.all() == {}

    def test_mask_secret(self):
        """Should never reveal more than the last four characters."""
        assert mask_secret(None) == "[Not set]"
        assert mask_secret("") == "[Not set]"
        assert mask_secret("abcd") == "[••••]"
        assert mask_secret("sk-abcdef1234") == "[••••1234]"


class TestPackageSettings:
    """Test per-package settings documents."""

    def test_get_default_then_set(self):
        """Should return the default before any write and the value after."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = PackageSettingsStore(Path(tmpdir))
            assert settings.get("p1", "k", 42) == 42

            settings.set("p1", "k", 7)
            assert settings.get("p1", "k", 42) == 7

            # Fresh store on the same directory (simulated restart)
            assert PackageSettingsStore(Path(tmpdir)).get("p1", "k", 42) == 7

    def test_set_none_removes_key(self):
        """Setting None should delete the key."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = PackageSettingsStore(Path(tmpdir))
            settings.set("p1", "k", "v")
            settings.set("p1", "k", None)
            assert settings.get_all("p1") == {}

    def test_set_all_replaces_document(self):
        """set_all should replace the whole document."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = PackageSettingsStore(Path(tmpdir))
            settings.set("p1", "old", 1)
            settings.set_all("p1", {"new": [1, 2]})
            assert settings.get_all("p1") == {"new": [1, 2]}

    def test_corruption_is_isolated(self):
        """A corrupted settings file should not affect another package."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = PackageSettingsStore(Path(tmpdir))
            settings.set("p1", "k", 1)
            settings.set("p2", "k", 2)

            settings.path_for("p1").write_text("{{{{")

            assert settings.get("p1", "k", "default") == "default"
            assert settings.get("p2", "k") == 2

    def test_ids_cannot_escape_directory(self):
        """Package ids should map to file names inside the settings directory."""
        assert safe_file_stem("../../etc/passwd") == ".._.._etc_passwd"
        assert safe_file_stem("..") == "_.."
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = PackageSettingsStore(Path(tmpdir))
            assert settings.path_for("../evil").parent == Path(tmpdir)


class TestMigration:
    """Test the one-shot legacy settings migration."""

    def _write_legacy(self, path: Path) -> None:
        path.write_text(
            json.dumps(
                {
                    LEGACY_STATE_KEY: {
                        "version": 1,
                        "manifest": {"packages": [{"id": "whisper"}]},
                        "lastRefresh": 100,
                        "packages": {"trimmy": {"installed": True, "enabled": True}},
                        "secrets": {"OPENAI_KEY": "sk-1"},
                    },
                    "trimmy.aggressiveness": "high",
                    "whisper.model": "base",
                    "unrelated.key": 1,
                }
            )
        )

    def _stores(self, root: Path):
        return (
            StateStore(root / "state.json"),
            SecretStore(root / "secrets.json"),
            PackageSettingsStore(root / "settings"),
        )

    def test_migrates_everything(self):
        """Should move state, secrets and package settings into documents."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self._write_legacy(root / "legacy.json")
            state_store, secrets, settings = self._stores(root)

            migrated = migrate_legacy_settings(
                LegacySettingsFile(root / "legacy.json"), state_store, secrets, settings
            )

            assert migrated is True
            assert StateStore(root / "state.json").get_flags("trimmy").enabled
            assert secrets.get("OPENAI_KEY") == "sk-1"
            assert settings.get("trimmy", "aggressiveness") == "high"
            assert settings.get("whisper", "model") == "base"

            leftover = json.loads((root / "legacy.json").read_text())
            assert leftover == {"unrelated.key": 1}

    def test_runs_once(self):
        """Should not run when the state document already exists."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self._write_legacy(root / "legacy.json")
            state_store, secrets, settings = self._stores(root)
            state_store.save()

            migrated = migrate_legacy_settings(
                LegacySettingsFile(root / "legacy.json"), state_store, secrets, settings
            )

            assert migrated is False
            assert secrets.get("OPENAI_KEY") is None

    def test_no_legacy_state(self):
        """Should do nothing without a legacy state entry."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            state_store, secrets, settings = self._stores(root)
            migrated = migrate_legacy_settings(
                LegacySettingsFile(root / "legacy.json"), state_store, secrets, settings
            )
            assert migrated is False
            assert not state_store.exists()

    def test_storage_error_propagates(self):
        """Write failures during migration should surface as StorageError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self._write_legacy(root / "legacy.json")
            (root / "blocker").write_text("")
            state_store = StateStore(root / "blocker" / "state.json")
            _, secrets, settings = self._stores(root)

            with pytest.raises(StorageError):
                migrate_legacy_settings(
                    LegacySettingsFile(root / "legacy.json"),
                    state_store,
                    secrets,
                    settings,
                )
