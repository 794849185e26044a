"""
Package Code Cache.

Downloaded package source is kept on disk, one file per package id, so
enabled packages can start without network access.
"""

import logging
from pathlib import Path

import httpx

from powerspoons.errors import OpenFailed
from powerspoons.package.http import fetch_text
from powerspoons.package.manifest import PackageDefinition
from powerspoons.storage.documents import ensure_dir, remove_file
from powerspoons.storage.settings import safe_file_stem

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"


class CodeCache:
    """Download and on-disk cache of package source text."""

    def __init__(self, cache_dir: Path, client: httpx.AsyncClient):
        """
        Initialize CodeCache.

        Args:
            cache_dir: Directory holding cached sources
            client: Shared async HTTP client
        """
        self.cache_dir = cache_dir
        self.client = client

    def path_for(self, package_id: str) -> Path:
        return self.cache_dir / f"{safe_file_stem(package_id)}{SOURCE_SUFFIX}"

    def exists(self, package_id: str) -> bool:
        return self.path_for(package_id).is_file()

    async def download(self, definition: PackageDefinition) -> str:
        """
        Download a package's source and replace its cached copy.

        Args:
            definition: Catalog entry whose source URL is fetched

        Returns:
            Downloaded source text

        Raises:
            FetchError: If the download fails or the body is empty
            StorageError: If the cache file cannot be written
        """
        source = await self.fetch(definition)
        self.write(definition.id, source)
        return source

    async def fetch(self, definition: PackageDefinition) -> str:
        """
        Download a package's source without touching the cache.

        Raises:
            FetchError: If the download fails or the body is empty
        """
        return await fetch_text(self.client, definition.source)

    def write(self, package_id: str, source: str) -> None:
        """
        Raises:
            StorageError: If the cache file cannot be written
        """
        ensure_dir(self.cache_dir)
        path = self.path_for(package_id)
        try:
            path.write_text(source, encoding="utf-8")
        except OSError as e:
            raise OpenFailed(path, f"Failed to write cache file {path}: {e}") from e
        logger.debug("Cached %d bytes for %s", len(source), package_id)

    def read(self, package_id: str) -> str | None:
        """
        Read cached source.

        Returns:
            Source text, or None if nothing usable is cached
        """
        try:
            source = self.path_for(package_id).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read cached source for %s: %s", package_id, e)
            return None
        return source or None

    def remove(self, package_id: str) -> bool:
        """
        Delete cached source.

        Returns:
            True if a file was removed

        Raises:
            OSError: If the file exists but cannot be deleted
        """
        return remove_file(self.path_for(package_id))
