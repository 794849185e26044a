"""
Legacy settings migration.

Older installs kept everything in one flat key-value file: the manager state
(including secrets) under "powerspoons.state" and package settings under
"<package id>.<key>". This one-shot step splits that into the document stores.
It runs only while no state document exists, so repeating it is a no-op.
"""

import logging
from pathlib import Path
from typing import Any

from powerspoons.storage.documents import read_document, write_document
from powerspoons.storage.secrets import SecretStore
from powerspoons.storage.settings import PackageSettingsStore
from powerspoons.storage.state import ManagerState, StateStore

logger = logging.getLogger(__name__)

LEGACY_STATE_KEY = "powerspoons.state"


class LegacySettingsFile:
    """Flat key-value JSON file standing in for the old settings API."""

    def __init__(self, path: Path):
        self.path = path
        self._data = read_document(path, {})

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def flush(self) -> None:
        """
        Write remaining keys back.

        Raises:
            StorageError: If the file cannot be written
        """
        write_document(self.path, self._data)


def _package_ids(old_state: dict[str, Any]) -> list[str]:
    ids = []
    packages = old_state.get("packages")
    if isinstance(packages, dict):
        ids.extend(str(package_id) for package_id in packages)

    manifest = old_state.get("manifest")
    if isinstance(manifest, dict) and isinstance(manifest.get("packages"), list):
        for entry in manifest["packages"]:
            if isinstance(entry, dict) and isinstance(entry.get("id"), str):
                ids.append(entry["id"])

    return list(dict.fromkeys(ids))


def migrate_legacy_settings(
    legacy: LegacySettingsFile,
    state_store: StateStore,
    secrets: SecretStore,
    settings: PackageSettingsStore,
) -> bool:
    """
    Import a legacy settings file into the document stores.

    Args:
        legacy: Legacy key-value store
        state_store: Target state store
        secrets: Target secret store
        settings: Target package settings store

    Returns:
        True if a migration was performed

    Raises:
        StorageError: If a migrated document cannot be written
    """
    old_state = legacy.get(LEGACY_STATE_KEY)
    if not isinstance(old_state, dict):
        return False

    if state_store.exists():
        return False

    logger.info("Migrating legacy settings from %s", legacy.path)

    state_store.state = ManagerState.from_dict(old_state)
    state_store.save()

    old_secrets = old_state.get("secrets")
    if isinstance(old_secrets, dict):
        secrets.replace(
            {key: value for key, value in old_secrets.items() if isinstance(value, str)}
        )

    for package_id in _package_ids(old_state):
        prefix = f"{package_id}."
        package_settings = {}
        for key in legacy.keys():
            if key.startswith(prefix):
                package_settings[key[len(prefix):]] = legacy.get(key)
                legacy.delete(key)

        if package_settings:
            settings.set_all(package_id, package_settings)
            logger.info("Migrated settings for package: %s", package_id)

    legacy.delete(LEGACY_STATE_KEY)
    legacy.flush()

    logger.info("Migration complete")
    return True
