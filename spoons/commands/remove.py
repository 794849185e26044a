"""
spoons remove command (-R).

Uninstall packages and delete their cached code.
"""

import asyncio
import sys
from typing import Any

from spoons.commands import open_manager, report


def remove_command(args: Any) -> int:
    """
    Execute remove command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: spoons -R <id>...", file=sys.stderr)
        return 1

    return asyncio.run(remove_async(args))


async def remove_async(args: Any) -> int:
    """Async remove implementation."""
    fail_count = 0

    async with open_manager(args) as manager:
        controller = manager.controller
        for package_id in args.targets:
            if not controller.registry.get_flags(package_id).installed:
                print(f"Warning: {package_id} is not installed", file=sys.stderr)
                continue
            result = controller.uninstall(package_id)
            if not report(result, f"Removed {package_id}", args.verbose):
                fail_count += 1

    return 0 if fail_count == 0 else 1
