"""
Package Lifecycle Controller.

This module drives every package through its state machine and owns the
running package instances.

Key features:
- install / update / uninstall / toggle_enabled / start / stop transitions
- Manifest refresh with stale-instance eviction and catch-up starts
- One running instance per enabled package, owned exclusively here
- Every transition is idempotent and returns an OperationResult
- Per-package guard rejecting overlapping install/update downloads

States per package id:
    ABSENT -> install -> INSTALLED(enabled) -> toggle -> INSTALLED(disabled)
    INSTALLED(*) -> uninstall -> ABSENT
"""

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from powerspoons.errors import (
    FetchError,
    LoadError,
    ModuleFault,
    NotCached,
    NotInstalled,
    OperationInProgress,
    PowerSpoonsError,
    StorageError,
    UnknownPackage,
)
from powerspoons.host import Host
from powerspoons.package.api import ManagerAPI
from powerspoons.package.cache import CodeCache
from powerspoons.package.loader import PACKAGE_FAULTS, PackageModule, instantiate
from powerspoons.package.manifest import ManifestClient, PackageDefinition
from powerspoons.package.registry import PackageRegistry, PackageStatus

logger = logging.getLogger(__name__)

NOTIFY_TITLE = "Power Spoons"
DEFAULT_AUTO_REFRESH_INTERVAL = 24 * 60 * 60


@dataclass
class OperationResult:
    """
    Outcome of a controller operation.

    Attributes:
        package_id: Package the operation targeted (None for global operations)
        error: First failure, if the operation did not fully succeed
        warnings: Secondary failures that did not stop the operation
    """

    package_id: str | None = None
    error: PowerSpoonsError | None = None
    warnings: list[PowerSpoonsError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def is_error(self) -> bool:
        """Check if the operation failed."""
        return self.error is not None

    def absorb(self, other: "OperationResult") -> None:
        """Fold a sub-operation's outcome into this one."""
        if other.error is not None:
            if self.error is None:
                self.error = other.error
            else:
                self.warnings.append(other.error)
        self.warnings.extend(other.warnings)


@dataclass(eq=False)
class _PendingOperation:
    operation: str
    cancelled: bool = False


class LifecycleController:
    """
    Package lifecycle state machine.

    Host surfaces hold a reference to the controller and call its public
    operations; they never touch the instance map directly.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        cache: CodeCache,
        manifest_client: ManifestClient,
        api: ManagerAPI,
        host: Host,
        auto_refresh_interval: float = DEFAULT_AUTO_REFRESH_INTERVAL,
    ):
        """
        Initialize LifecycleController.

        Args:
            registry: Package registry (manifest snapshot + flags)
            cache: Package code cache
            manifest_client: Remote catalog client
            api: ManagerAPI handed to every package factory
            host: Host surface for user-visible notifications
            auto_refresh_interval: Seconds between automatic manifest refreshes
        """
        self.registry = registry
        self.cache = cache
        self.manifest_client = manifest_client
        self.api = api
        self.host = host
        self.auto_refresh_interval = auto_refresh_interval
        self._instances: dict[str, PackageModule] = {}
        self._pending: dict[str, _PendingOperation] = {}

    # Introspection

    @property
    def instances(self) -> MappingProxyType:
        """Read-only view of running instances (package id -> object)."""
        return MappingProxyType(self._instances)

    def get_instance(self, package_id: str) -> PackageModule | None:
        return self._instances.get(package_id)

    def is_running(self, package_id: str) -> bool:
        return package_id in self._instances

    def is_pending(self, package_id: str) -> bool:
        return package_id in self._pending

    def status(self, package_id: str) -> PackageStatus:
        return self.registry.status(package_id, self.is_running(package_id))

    def _call_hook(self, package_id: str, hook: str) -> Any:
        """Call an optional hook of a running package; None if absent or faulty."""
        method = getattr(self._instances.get(package_id), hook, None)
        if not callable(method):
            return None
        try:
            return method()
        except PACKAGE_FAULTS:
            logger.exception("Package '%s' %s() failed", package_id, hook)
            return None

    def menu_items(self, package_id: str) -> list[Any]:
        """
        Menu descriptors contributed by a running package.

        Returns:
            The package's items, or [] when it has none or the call fails
        """
        items = self._call_hook(package_id, "get_menu_items")
        return list(items) if items else []

    def hotkey_spec(self, package_id: str) -> Any:
        """Hotkey description reported by a running package, if any."""
        return self._call_hook(package_id, "get_hotkey_spec")

    def package_status(self, package_id: str) -> Any:
        """Package-defined status reported by a running package, if any."""
        return self._call_hook(package_id, "get_status")

    # Helpers

    def _notify(self, text: str) -> None:
        try:
            self.host.notify(NOTIFY_TITLE, text)
        except Exception:
            logger.exception("Host failed to show notification")

    def _save(self, result: OperationResult) -> None:
        """Persist state; a failure is logged and recorded, never raised."""
        try:
            self.registry.state_store.save()
        except StorageError as e:
            logger.error("Failed to save manager state: %s", e)
            result.warnings.append(e)

    def _begin(self, package_id: str, operation: str) -> _PendingOperation:
        current = self._pending.get(package_id)
        if current is not None:
            raise OperationInProgress(package_id, current.operation)
        token = _PendingOperation(operation)
        self._pending[package_id] = token
        return token

    def _finish(self, package_id: str, token: _PendingOperation) -> None:
        if self._pending.get(package_id) is token:
            del self._pending[package_id]

    async def _download(self, definition: PackageDefinition, operation: str) -> bool:
        """
        Download code under the in-flight guard and cache it.

        Nothing is written when the operation was cancelled by an uninstall
        while the request was in flight.

        Returns:
            True if the code was cached, False if the operation was cancelled

        Raises:
            OperationInProgress, FetchError, StorageError
        """
        token = self._begin(definition.id, operation)
        try:
            source = await self.cache.fetch(definition)
            if token.cancelled:
                return False
            self.cache.write(definition.id, source)
        finally:
            self._finish(definition.id, token)
        return True

    # Transitions

    def start(self, package_id: str, notify: bool = True) -> OperationResult:
        """
        Load and start a package from its cached code.

        No-op when already running or when the package is not installed and
        enabled. A failing module start() is reported but the instance stays
        registered.

        Args:
            package_id: Package to start
            notify: Show failures to the user (False for background starts)
        """
        result = OperationResult(package_id)

        if package_id in self._instances:
            return result

        if not self.registry.get_flags(package_id).active:
            return result

        if self.registry.get_definition(package_id) is None:
            result.error = UnknownPackage(package_id)
        else:
            source = self.cache.read(package_id)
            if source is None:
                result.error = NotCached(package_id)
            else:
                try:
                    instance = instantiate(package_id, source, self.api)
                except LoadError as e:
                    result.error = e

        if result.error is not None:
            logger.warning("Failed to load package '%s': %s", package_id, result.error)
            if notify:
                self._notify(f"Failed to load package '{package_id}': {result.error}")
            return result

        self._instances[package_id] = instance
        logger.info("Started package '%s'", package_id)

        try:
            instance.start()
        except PACKAGE_FAULTS as e:
            logger.exception("Package '%s' start() failed", package_id)
            result.error = ModuleFault(package_id, "start", e)
            if notify:
                self._notify(f"Failed to start package '{package_id}': {e}")

        return result

    def stop(self, package_id: str) -> OperationResult:
        """
        Stop a running package. No-op when it is not running.

        The instance is always unregistered, even if its stop() raises.
        """
        result = OperationResult(package_id)
        instance = self._instances.get(package_id)
        if instance is None:
            return result

        try:
            stop = getattr(instance, "stop", None)
            if callable(stop):
                stop()
        except PACKAGE_FAULTS as e:
            logger.exception("Package '%s' stop() failed", package_id)
            result.warnings.append(ModuleFault(package_id, "stop", e))
        finally:
            self._instances.pop(package_id, None)

        logger.info("Stopped package '%s'", package_id)
        return result

    async def install(self, package_id: str) -> OperationResult:
        """
        Download a package, mark it installed and enabled, then start it.

        On download failure the package's state is left unchanged.
        """
        result = OperationResult(package_id)

        definition = self.registry.get_definition(package_id)
        if definition is None:
            result.error = UnknownPackage(package_id)
            self._notify(str(result.error))
            return result

        try:
            cached = await self._download(definition, "install")
        except OperationInProgress as e:
            result.error = e
            return result
        except (FetchError, StorageError) as e:
            logger.warning("Failed to download '%s': %s", package_id, e)
            self._notify(f"Failed to download '{package_id}': {e}")
            result.error = e
            return result

        if not cached:
            # Uninstalled while the download was in flight.
            result.error = NotInstalled(package_id)
            return result

        # Reinstall over a running instance: never keep it on the old code.
        result.warnings.extend(self.stop(package_id).warnings)

        self.registry.state_store.mark_installed(package_id, definition.version)
        self._save(result)

        result.absorb(self.start(package_id))
        self._notify(f"Installed: {definition.name}")
        return result

    async def toggle_enabled(self, package_id: str) -> OperationResult:
        """Install when absent, otherwise flip enabled and stop/start accordingly."""
        flags = self.registry.get_flags(package_id)
        if not flags.installed:
            return await self.install(package_id)

        result = OperationResult(package_id)
        store = self.registry.state_store

        if flags.enabled:
            store.set_enabled(package_id, False)
            self._save(result)
            result.absorb(self.stop(package_id))
        else:
            store.set_enabled(package_id, True)
            self._save(result)
            result.absorb(self.start(package_id))

        return result

    async def update(self, package_id: str) -> OperationResult:
        """
        Download fresh code for an installed package.

        A running instance is restarted on the new code.
        """
        result = OperationResult(package_id)

        if not self.registry.get_flags(package_id).installed:
            result.error = NotInstalled(package_id)
            return result

        definition = self.registry.get_definition(package_id)
        if definition is None:
            result.error = UnknownPackage(package_id)
            return result

        try:
            cached = await self._download(definition, "update")
        except OperationInProgress as e:
            result.error = e
            return result
        except (FetchError, StorageError) as e:
            logger.warning("Failed to update '%s': %s", package_id, e)
            self._notify(f"Failed to update '{package_id}': {e}")
            result.error = e
            return result

        if not cached:
            result.error = NotInstalled(package_id)
            return result

        self.registry.state_store.mark_updated(package_id, definition.version)
        self._save(result)

        if self.is_running(package_id):
            result.absorb(self.stop(package_id))
        if self.registry.get_flags(package_id).active:
            result.absorb(self.start(package_id))

        self._notify(f"Updated: {definition.name} ({definition.version})")
        return result

    def uninstall(self, package_id: str) -> OperationResult:
        """
        Stop a package, forget its flags and delete its cached code.

        Cancels any download in flight for the package. Cache deletion is
        best-effort.
        """
        result = OperationResult(package_id)

        pending = self._pending.pop(package_id, None)
        if pending is not None:
            pending.cancelled = True
        result.absorb(self.stop(package_id))

        if self.registry.state_store.remove(package_id) is not None:
            self._save(result)

        try:
            self.cache.remove(package_id)
        except OSError as e:
            logger.warning("Failed to delete cached code for '%s': %s", package_id, e)

        return result

    async def refresh_manifest(self, manual: bool = False) -> OperationResult:
        """
        Fetch the manifest and reconcile running instances with it.

        Instances whose id disappeared are stopped; installed and enabled
        packages without an instance are started.

        Args:
            manual: User-triggered (notify progress and failures) or automatic
                (failures are only logged)
        """
        result = OperationResult()

        if manual:
            self._notify("Refreshing package list...")

        try:
            manifest = await self.manifest_client.fetch()
        except FetchError as e:
            result.error = e
            if manual:
                self._notify(f"Failed to refresh: {e}")
            else:
                logger.warning("Automatic manifest refresh failed: %s", e)
            return result

        self.registry.replace_manifest(manifest)
        self._save(result)

        for package_id in list(self._instances):
            if package_id not in manifest:
                logger.info("Stopping '%s': no longer in manifest", package_id)
                result.warnings.extend(self.stop(package_id).warnings)

        for package_id in self.registry.active_ids():
            if not self.is_running(package_id):
                started = self.start(package_id, notify=manual)
                if started.error is not None:
                    result.warnings.append(started.error)
                result.warnings.extend(started.warnings)

        logger.info("Manifest refreshed: %d packages", len(manifest.packages))
        if manual:
            self._notify("Package list refreshed!")

        return result

    def refresh_due(self, now: float | None = None) -> bool:
        state = self.registry.state_store.state
        if state.manifest is None:
            return True
        now = time.time() if now is None else now
        return now - state.last_refresh > self.auto_refresh_interval

    async def auto_refresh_if_due(self, now: float | None = None) -> OperationResult | None:
        """Run a silent refresh when none happened within the refresh interval."""
        if not self.refresh_due(now):
            return None
        return await self.refresh_manifest(manual=False)

    async def startup(self) -> OperationResult:
        """Start every installed and enabled package, then auto-refresh if due."""
        result = OperationResult()

        for package_id in self.registry.active_ids():
            started = self.start(package_id, notify=False)
            if started.error is not None:
                result.warnings.append(started.error)
            result.warnings.extend(started.warnings)

        refreshed = await self.auto_refresh_if_due()
        if refreshed is not None:
            result.absorb(refreshed)

        return result

    def shutdown(self) -> None:
        """Stop every running instance (process teardown)."""
        for package_id in list(self._instances):
            self.stop(package_id)
