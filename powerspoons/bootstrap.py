"""
Manager wiring.

Builds the stores, clients and controller from a ManagerConfig and runs the
one-shot legacy migration.
"""

import logging
from dataclasses import dataclass

import httpx

from powerspoons.config import ManagerConfig
from powerspoons.errors import StorageError
from powerspoons.host import Host, LoggingHost
from powerspoons.package.api import ManagerAPI
from powerspoons.package.cache import CodeCache
from powerspoons.package.controller import LifecycleController
from powerspoons.package.manifest import ManifestClient
from powerspoons.package.registry import PackageRegistry
from powerspoons.storage.documents import ensure_dir
from powerspoons.storage.migration import LegacySettingsFile, migrate_legacy_settings
from powerspoons.storage.secrets import SecretStore
from powerspoons.storage.settings import PackageSettingsStore
from powerspoons.storage.state import StateStore

logger = logging.getLogger(__name__)


@dataclass
class Manager:
    """
    Everything a host needs, wired together.

    Attributes:
        config: Resolved configuration
        controller: Lifecycle controller
        secrets: Secret store
        settings: Package settings store
        http: Shared HTTP client (close with aclose())
    """

    config: ManagerConfig
    controller: LifecycleController
    secrets: SecretStore
    settings: PackageSettingsStore
    http: httpx.AsyncClient

    async def aclose(self) -> None:
        self.controller.shutdown()
        await self.http.aclose()


def create_manager(
    config: ManagerConfig,
    host: Host | None = None,
    http: httpx.AsyncClient | None = None,
) -> Manager:
    """
    Build a Manager.

    Args:
        config: Resolved configuration
        host: Host surface (default: LoggingHost)
        http: HTTP client (default: one built from config.http_timeout)

    Returns:
        Wired Manager
    """
    for directory in (config.base_dir, config.cache_dir, config.settings_dir):
        try:
            ensure_dir(directory)
        except StorageError as e:
            logger.error("%s", e)

    host = host or LoggingHost()
    http = http or httpx.AsyncClient(timeout=config.http_timeout, follow_redirects=True)

    secrets = SecretStore(config.secrets_file)
    settings = PackageSettingsStore(config.settings_dir)
    state_store = StateStore(config.state_file)

    if config.legacy_file.exists():
        try:
            migrate_legacy_settings(
                LegacySettingsFile(config.legacy_file), state_store, secrets, settings
            )
        except StorageError as e:
            logger.error("Legacy settings migration failed: %s", e)

    api = ManagerAPI(secrets, settings, host)
    controller = LifecycleController(
        registry=PackageRegistry(state_store),
        cache=CodeCache(config.cache_dir, http),
        manifest_client=ManifestClient(config.manifest_url, http),
        api=api,
        host=host,
        auto_refresh_interval=config.auto_refresh_interval,
    )

    return Manager(
        config=config,
        controller=controller,
        secrets=secrets,
        settings=settings,
        http=http,
    )
