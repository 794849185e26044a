"""
Package Manifest.

This module provides the remote package catalog: parsing, validation and
retrieval.

Key features:
- PackageDefinition per catalog entry (versions are opaque strings)
- Lenient entry parsing: malformed entries are skipped, not fatal
- Async fetch over httpx with typed FetchError failures
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from powerspoons.errors import EmptyResponse, InvalidManifest
from powerspoons.package.http import fetch_text

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "version", "source")


@dataclass(frozen=True)
class SecretDescriptor:
    """
    A secret a package needs the user to provide.

    Attributes:
        key: Secret store key
        label: Human-readable label
        hint: Prompt hint
    """

    key: str
    label: str
    hint: str = ""


@dataclass(frozen=True)
class HotkeyDescriptor:
    """
    A hotkey-bound action a package offers.

    Attributes:
        id: Action identifier
        label: Human-readable label
        default: Default key binding, if any
    """

    id: str
    label: str
    default: str | None = None


@dataclass(frozen=True)
class PackageDefinition:
    """
    Catalog entry for one installable package.

    Attributes:
        id: Unique package identifier
        name: Display name
        version: Opaque version string (compared for equality only)
        source: URL of the package code
        description: Short description
        readme: Optional README URL
        hotkey: Optional default hotkey text
        hotkeys: Hotkey action descriptors
        secrets: Required secret descriptors
    """

    id: str
    name: str
    version: str
    source: str
    description: str = ""
    readme: str | None = None
    hotkey: str | None = None
    hotkeys: tuple[HotkeyDescriptor, ...] = ()
    secrets: tuple[SecretDescriptor, ...] = ()


@dataclass
class Manifest:
    """
    Parsed package catalog.

    Attributes:
        packages: Definitions in catalog order
        raw_data: The JSON object the catalog was parsed from
    """

    packages: list[PackageDefinition] = field(default_factory=list)
    raw_data: dict[str, Any] = field(default_factory=dict)

    def get(self, package_id: str) -> PackageDefinition | None:
        for definition in self.packages:
            if definition.id == package_id:
                return definition
        return None

    def ids(self) -> set[str]:
        return {definition.id for definition in self.packages}

    def __contains__(self, package_id: object) -> bool:
        return any(definition.id == package_id for definition in self.packages)


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _parse_secrets(raw: Any) -> tuple[SecretDescriptor, ...]:
    if not isinstance(raw, list):
        return ()
    secrets = []
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("key"), str):
            secrets.append(
                SecretDescriptor(
                    key=item["key"],
                    label=item.get("label") or item["key"],
                    hint=item.get("hint") or "",
                )
            )
    return tuple(secrets)


def _parse_hotkeys(raw: Any) -> tuple[HotkeyDescriptor, ...]:
    if not isinstance(raw, list):
        return ()
    hotkeys = []
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("id"), str):
            hotkeys.append(
                HotkeyDescriptor(
                    id=item["id"],
                    label=item.get("label") or item["id"],
                    default=_optional_str(item.get("default")),
                )
            )
    return tuple(hotkeys)


def parse_definition(entry: Any) -> PackageDefinition | None:
    """
    Parse one catalog entry.

    Args:
        entry: Raw entry from the manifest's packages array

    Returns:
        PackageDefinition, or None if the entry is malformed
    """
    if not isinstance(entry, dict):
        return None

    for name in REQUIRED_FIELDS:
        if name not in entry:
            return None

    version = entry["version"]
    if isinstance(version, bool) or not isinstance(version, (str, int, float)):
        return None

    for name in ("id", "name", "source"):
        if not isinstance(entry[name], str) or not entry[name]:
            return None

    description = entry.get("description")
    return PackageDefinition(
        id=entry["id"],
        name=entry["name"],
        version=str(version),
        source=entry["source"],
        description=description if isinstance(description, str) else "",
        readme=_optional_str(entry.get("readme")),
        hotkey=_optional_str(entry.get("hotkey")),
        hotkeys=_parse_hotkeys(entry.get("hotkeys")),
        secrets=_parse_secrets(entry.get("secrets")),
    )


def parse_manifest(data: Any) -> Manifest:
    """
    Build a Manifest from a decoded JSON value.

    Args:
        data: Decoded manifest body

    Returns:
        Manifest object

    Raises:
        InvalidManifest: If data is not an object or packages is not a list
    """
    if not isinstance(data, dict):
        raise InvalidManifest("Manifest must be a JSON object")

    raw_packages = data.get("packages", [])
    if not isinstance(raw_packages, list):
        raise InvalidManifest("'packages' field must be a list")

    packages = []
    seen = set()
    for index, entry in enumerate(raw_packages):
        definition = parse_definition(entry)
        if definition is None:
            logger.warning("Skipping malformed manifest entry #%d", index)
            continue
        if definition.id in seen:
            logger.warning("Skipping duplicate manifest entry for '%s'", definition.id)
            continue
        seen.add(definition.id)
        packages.append(definition)

    return Manifest(packages=packages, raw_data=data)


def decode_manifest(body: str) -> Manifest:
    """
    Decode a manifest response body.

    Raises:
        EmptyResponse: If the body is blank
        InvalidManifest: If the body is not a JSON object of the expected shape
    """
    if not body or not body.strip():
        raise EmptyResponse("Empty manifest response")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidManifest(f"Invalid manifest JSON: {e}") from e

    return parse_manifest(data)


class ManifestClient:
    """Fetches the package catalog from a single origin."""

    def __init__(self, url: str, client: httpx.AsyncClient):
        """
        Initialize ManifestClient.

        Args:
            url: Manifest URL
            client: Shared async HTTP client
        """
        self.url = url
        self.client = client

    async def fetch(self) -> Manifest:
        """
        Fetch and parse the manifest.

        Returns:
            Parsed Manifest

        Raises:
            FetchError: HttpError, EmptyResponse, InvalidManifest or NetworkError
        """
        body = await fetch_text(self.client, self.url)
        return decode_manifest(body)
