"""
Manager State.

This module holds the persisted install/enable state of every package together
with the last fetched manifest.

Key features:
- PackageFlags per package id (installed, enabled, version, last_updated)
- enabled implies installed, enforced on load and on every mutation
- In-memory state stays authoritative when a save fails
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from powerspoons.storage.documents import read_document, write_document

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


@dataclass
class PackageFlags:
    """
    Persisted flags for one package.

    Attributes:
        installed: Code has been downloaded and the package is managed
        enabled: Package should be running
        version: Manifest version that was last installed
        last_updated: Unix timestamp of the last install or update
    """

    installed: bool = False
    enabled: bool = False
    version: str = ""
    last_updated: float = 0.0

    def __post_init__(self):
        if self.enabled and not self.installed:
            self.enabled = False

    @property
    def active(self) -> bool:
        """True when the package is installed and enabled."""
        return self.installed and self.enabled

    def to_dict(self) -> dict[str, Any]:
        return {
            "installed": self.installed,
            "enabled": self.enabled,
            "version": self.version,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageFlags":
        version = data.get("version", "")
        last_updated = data.get("lastUpdated", 0)
        return cls(
            installed=data.get("installed") is True,
            enabled=data.get("enabled") is True,
            version=str(version) if version is not None else "",
            last_updated=float(last_updated)
            if isinstance(last_updated, (int, float))
            else 0.0,
        )


@dataclass
class ManagerState:
    """
    Whole persisted manager state.

    Attributes:
        version: Schema version of the state document
        manifest: Raw manifest object from the last successful fetch
        last_refresh: Unix timestamp of the last successful fetch (0 = never)
        packages: package id -> PackageFlags
    """

    version: int = SCHEMA_VERSION
    manifest: dict[str, Any] | None = None
    last_refresh: float = 0.0
    packages: dict[str, PackageFlags] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "manifest": self.manifest,
            "lastRefresh": self.last_refresh,
            "packages": {
                package_id: flags.to_dict()
                for package_id, flags in self.packages.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManagerState":
        manifest = data.get("manifest")
        last_refresh = data.get("lastRefresh", 0)
        raw_packages = data.get("packages")

        packages = {}
        if isinstance(raw_packages, dict):
            for package_id, raw_flags in raw_packages.items():
                if isinstance(raw_flags, dict):
                    packages[str(package_id)] = PackageFlags.from_dict(raw_flags)

        version = data.get("version", SCHEMA_VERSION)
        return cls(
            version=version if isinstance(version, int) else SCHEMA_VERSION,
            manifest=manifest if isinstance(manifest, dict) else None,
            last_refresh=float(last_refresh)
            if isinstance(last_refresh, (int, float))
            else 0.0,
            packages=packages,
        )


class StateStore:
    """
    Owner of the in-memory ManagerState and its on-disk document.

    The state is read once at construction; afterwards callers mutate it through
    the helpers below and call save().
    """

    def __init__(self, path: Path):
        """
        Initialize StateStore.

        Args:
            path: Path of the state document
        """
        self.path = path
        self.state = self.load()

    def load(self) -> ManagerState:
        """Read the state document (defaults on missing or malformed file)."""
        return ManagerState.from_dict(read_document(self.path, {}))

    def save(self) -> None:
        """
        Persist the in-memory state.

        Raises:
            StorageError: If the document cannot be written
        """
        write_document(self.path, self.state.to_dict())

    def exists(self) -> bool:
        return self.path.exists()

    def get_flags(self, package_id: str) -> PackageFlags:
        """Flags for a package, or fresh (absent) flags if none are stored."""
        return self.state.packages.get(package_id) or PackageFlags()

    def mark_installed(self, package_id: str, version: str) -> PackageFlags:
        flags = PackageFlags(
            installed=True,
            enabled=True,
            version=version,
            last_updated=time.time(),
        )
        self.state.packages[package_id] = flags
        return flags

    def mark_updated(self, package_id: str, version: str) -> PackageFlags:
        flags = self.state.packages[package_id]
        flags.version = version
        flags.last_updated = time.time()
        return flags

    def set_enabled(self, package_id: str, enabled: bool) -> PackageFlags:
        flags = self.state.packages.get(package_id)
        if flags is None:
            flags = PackageFlags(installed=True)
            self.state.packages[package_id] = flags
        flags.enabled = enabled and flags.installed
        return flags

    def remove(self, package_id: str) -> PackageFlags | None:
        return self.state.packages.pop(package_id, None)

    def set_manifest(self, manifest: dict[str, Any]) -> None:
        """Replace the stored manifest and stamp the refresh time."""
        self.state.manifest = manifest
        self.state.last_refresh = time.time()
