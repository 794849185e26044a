"""
Package Registry.

Resolves a package id to its catalog definition and its persisted flags.
"""

import logging
from enum import Enum

from powerspoons.errors import InvalidManifest
from powerspoons.package.manifest import Manifest, PackageDefinition, parse_manifest
from powerspoons.storage.state import PackageFlags, StateStore

logger = logging.getLogger(__name__)


class PackageStatus(Enum):
    """Observable package status."""

    ABSENT = "absent"
    DISABLED = "disabled"
    RUNNING = "running"
    DEGRADED = "degraded"


class PackageRegistry:
    """
    Read/write view over the manifest snapshot and package flags.

    The parsed manifest is cached and re-parsed only when the stored raw
    manifest object is replaced.
    """

    def __init__(self, state_store: StateStore):
        self.state_store = state_store
        self._manifest: Manifest | None = None
        self._manifest_source: dict | None = None

    @property
    def manifest(self) -> Manifest | None:
        raw = self.state_store.state.manifest
        if raw is None:
            return None
        if raw is not self._manifest_source:
            try:
                self._manifest = parse_manifest(raw)
            except InvalidManifest as e:
                logger.warning("Stored manifest is invalid: %s", e)
                self._manifest = None
            self._manifest_source = raw
        return self._manifest

    def replace_manifest(self, manifest: Manifest) -> None:
        """Swap in a freshly fetched manifest (full replacement, no merge)."""
        self.state_store.set_manifest(manifest.raw_data)
        self._manifest = manifest
        self._manifest_source = manifest.raw_data

    def definitions(self) -> list[PackageDefinition]:
        manifest = self.manifest
        return list(manifest.packages) if manifest else []

    def get_definition(self, package_id: str) -> PackageDefinition | None:
        manifest = self.manifest
        return manifest.get(package_id) if manifest else None

    def get_flags(self, package_id: str) -> PackageFlags:
        return self.state_store.get_flags(package_id)

    def installed_ids(self) -> list[str]:
        return [
            package_id
            for package_id, flags in self.state_store.state.packages.items()
            if flags.installed
        ]

    def active_ids(self) -> list[str]:
        """Ids that are installed, enabled and defined in the current manifest."""
        return [
            definition.id
            for definition in self.definitions()
            if self.get_flags(definition.id).active
        ]

    def orphaned_ids(self) -> list[str]:
        """Ids with stored flags but no definition in the current manifest."""
        manifest = self.manifest
        known = manifest.ids() if manifest else set()
        return [
            package_id
            for package_id in self.state_store.state.packages
            if package_id not in known
        ]

    def status(self, package_id: str, running: bool) -> PackageStatus:
        flags = self.get_flags(package_id)
        if not flags.installed:
            return PackageStatus.ABSENT
        if not flags.enabled:
            return PackageStatus.DISABLED
        return PackageStatus.RUNNING if running else PackageStatus.DEGRADED
