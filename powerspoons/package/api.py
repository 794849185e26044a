"""
Manager API exposed to packages.

This is the only object a package factory receives. It reaches persisted
state and the host surface, never the lifecycle controller.
"""

import logging
from typing import Any

from powerspoons.errors import StorageError
from powerspoons.host import Host
from powerspoons.storage.secrets import SecretStore
from powerspoons.storage.settings import PackageSettingsStore

logger = logging.getLogger(__name__)

PACKAGE_LOGGER_PREFIX = "powerspoons.packages"


class ManagerAPI:
    """
    Capability surface for package code.

    Setters return True on success and False when the write failed; failures
    are logged rather than raised into package code.
    """

    def __init__(
        self,
        secrets: SecretStore,
        settings: PackageSettingsStore,
        host: Host,
    ):
        self._secrets = secrets
        self._settings = settings
        self._host = host

    # Secrets

    def get_secret(self, key: str) -> str | None:
        return self._secrets.get(key)

    def set_secret(self, key: str, value: str | None) -> bool:
        try:
            self._secrets.set(key, value)
        except StorageError as e:
            logger.error("Failed to save secret '%s': %s", key, e)
            return False
        return True

    # Settings

    def get_setting(self, package_id: str, key: str, default: Any = None) -> Any:
        return self._settings.get(package_id, key, default)

    def set_setting(self, package_id: str, key: str, value: Any) -> bool:
        try:
            self._settings.set(package_id, key, value)
        except StorageError as e:
            logger.error("Failed to save setting %s.%s: %s", package_id, key, e)
            return False
        return True

    def get_settings(self, package_id: str) -> dict[str, Any]:
        return self._settings.get_all(package_id)

    def set_settings(self, package_id: str, settings: dict[str, Any]) -> bool:
        try:
            self._settings.set_all(package_id, settings)
        except StorageError as e:
            logger.error("Failed to save settings for %s: %s", package_id, e)
            return False
        return True

    # Host surface

    def notify(self, title: str, text: str = "", options: dict[str, Any] | None = None) -> None:
        try:
            self._host.notify(title, text, **(options or {}))
        except Exception:
            logger.exception("Host failed to show notification '%s'", title)

    def play_sound(self, kind: str) -> None:
        try:
            self._host.play_sound(kind)
        except Exception:
            logger.exception("Host failed to play sound '%s'", kind)

    def log(self, package_id: str, message: str) -> None:
        logging.getLogger(f"{PACKAGE_LOGGER_PREFIX}.{package_id}").info(message)
