"""
Per-package settings.

Each package id owns an independent JSON document under the settings
directory, so a corrupted file only ever affects its own package. Contents are
never interpreted by the manager.
"""

import re
from pathlib import Path
from typing import Any

from powerspoons.storage.documents import read_document, write_document

_SAFE_ID = re.compile(r"[^A-Za-z0-9._-]")


def safe_file_stem(package_id: str) -> str:
    """Map a package id to a file name stem that cannot escape its directory."""
    stem = _SAFE_ID.sub("_", package_id)
    if stem in ("", ".", ".."):
        stem = f"_{stem}"
    return stem


class PackageSettingsStore:
    """Settings documents addressed by package id."""

    def __init__(self, settings_dir: Path):
        self.settings_dir = settings_dir

    def path_for(self, package_id: str) -> Path:
        return self.settings_dir / f"{safe_file_stem(package_id)}.json"

    def get_all(self, package_id: str) -> dict[str, Any]:
        return read_document(self.path_for(package_id), {})

    def get(self, package_id: str, key: str, default: Any = None) -> Any:
        value = self.get_all(package_id).get(key)
        if value is None:
            return default
        return value

    def set(self, package_id: str, key: str, value: Any) -> None:
        """
        Set one setting; None removes the key.

        Raises:
            StorageError: If the document cannot be written
        """
        settings = self.get_all(package_id)
        if value is None:
            settings.pop(key, None)
        else:
            settings[key] = value
        write_document(self.path_for(package_id), settings)

    def set_all(self, package_id: str, settings: dict[str, Any]) -> None:
        """
        Replace a package's whole settings document.

        Raises:
            StorageError: If the document cannot be written
        """
        write_document(self.path_for(package_id), dict(settings))
