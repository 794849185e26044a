"""
spoons install command (-S).

Install packages from the manifest and start them.
"""

import asyncio
import sys
from typing import Any

from spoons.commands import ensure_manifest, open_manager, report


def install_command(args: Any) -> int:
    """
    Execute install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: spoons -S <id>...", file=sys.stderr)
        return 1

    return asyncio.run(install_async(args))


async def install_async(args: Any) -> int:
    """Async install implementation."""
    success_count = 0
    fail_count = 0

    async with open_manager(args) as manager:
        controller = manager.controller

        if args.refresh:
            refreshed = await controller.refresh_manifest(manual=True)
            if not report(refreshed, "Package list refreshed", args.verbose):
                return 1
        else:
            await ensure_manifest(manager)

        for package_id in args.targets:
            result = await controller.install(package_id)
            definition = controller.registry.get_definition(package_id)
            name = definition.name if definition else package_id
            if report(result, f"Installed {name}", args.verbose):
                success_count += 1
            else:
                fail_count += 1

    if args.verbose:
        print(f"\nInstalled: {success_count}, Failed: {fail_count}")

    return 0 if fail_count == 0 else 1
