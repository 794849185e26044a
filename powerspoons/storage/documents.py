"""
JSON Document Storage.

This module provides the lowest persistence primitives.

Key features:
- Reads never fail: missing, empty or malformed files yield the caller's default
- Writes ensure the parent directory and report failures as StorageError
- No locking (single-process, single-threaded caller)
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from powerspoons.errors import OpenFailed, WriteFailed

logger = logging.getLogger(__name__)

Document = dict[str, Any]


def ensure_dir(path: Path) -> None:
    """
    Ensure a directory exists.

    Args:
        path: Directory path

    Raises:
        WriteFailed: If the directory cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailed(path, f"Failed to create directory {path}: {e}") from e


def read_document(path: Path, default: Document) -> Document:
    """
    Read a JSON object from disk.

    Args:
        path: Document path
        default: Value returned when the file is missing or malformed

    Returns:
        Parsed document, or a copy of default
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        return copy.deepcopy(default)
    except OSError as e:
        logger.warning("Failed to read %s: %s", path, e)
        return copy.deepcopy(default)

    if not content.strip():
        return copy.deepcopy(default)

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON document %s", path)
        return copy.deepcopy(default)

    if not isinstance(data, dict):
        logger.warning("Ignoring non-object JSON document %s", path)
        return copy.deepcopy(default)

    return data


def write_document(path: Path, document: Document) -> None:
    """
    Write a JSON object to disk, replacing the previous content.

    Args:
        path: Document path
        document: JSON-serializable mapping

    Raises:
        WriteFailed: If encoding fails or the directory cannot be ensured
        OpenFailed: If the file cannot be opened for writing
    """
    try:
        payload = json.dumps(document, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise WriteFailed(path, f"Failed to encode JSON for {path}: {e}") from e

    ensure_dir(path.parent)

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(payload)
    except OSError as e:
        raise OpenFailed(path, f"Failed to open {path} for writing: {e}") from e


def remove_file(path: Path) -> bool:
    """
    Delete a file if it exists.

    Args:
        path: File path

    Returns:
        True if a file was removed

    Raises:
        OSError: If the file exists but cannot be removed
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
