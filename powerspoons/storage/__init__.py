"""
Powerspoons Storage - Local persistence for manager state and package data.

This package handles:
- JSON document read/write with self-healing defaults
- Manager state (manifest snapshot and package flags)
- Secrets and per-package settings
- One-shot migration from the legacy settings file
"""

from powerspoons.storage.documents import read_document, remove_file, write_document
from powerspoons.storage.secrets import SecretStore, mask_secret
from powerspoons.storage.settings import PackageSettingsStore
from powerspoons.storage.state import ManagerState, PackageFlags, StateStore

__all__ = [
    "ManagerState",
    "PackageFlags",
    "PackageSettingsStore",
    "SecretStore",
    "StateStore",
    "mask_secret",
    "read_document",
    "remove_file",
    "write_document",
]
