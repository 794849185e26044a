"""
Shared helpers for spoons commands.
"""

import contextlib
import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from powerspoons.bootstrap import Manager, create_manager
from powerspoons.config import ConfigError, load_config
from powerspoons.logging_setup import setup_logging
from powerspoons.package.controller import OperationResult


@contextlib.asynccontextmanager
async def open_manager(args: Any) -> AsyncIterator[Manager]:
    """
    Build a Manager for one command and tear it down afterwards.

    Raises:
        SpoonsError: If the configuration cannot be loaded
    """
    from spoons.cli import SpoonsError

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        raise SpoonsError(str(e)) from e

    setup_logging(config, verbose=args.verbose)
    manager = create_manager(config)
    try:
        yield manager
    finally:
        await manager.aclose()


async def ensure_manifest(manager: Manager) -> None:
    """Fetch the manifest if there is none yet or it is stale."""
    result = await manager.controller.auto_refresh_if_due()
    if result is not None and result.is_error():
        print(f"Warning: failed to refresh package list: {result.error}", file=sys.stderr)


def report(result: OperationResult, success: str, verbose: bool = False) -> bool:
    """
    Print an operation outcome.

    Returns:
        True if the operation succeeded
    """
    label = result.package_id or "manager"
    if result.is_error():
        print(f"Error: {label}: {result.error}", file=sys.stderr)
    else:
        print(success)

    if verbose:
        for warning in result.warnings:
            print(f"Warning: {label}: {warning}", file=sys.stderr)

    return result.ok
