"""
spoons query command (-Q).

List installed packages with their status.
"""

import asyncio
from datetime import datetime
from typing import Any

from spoons.commands import open_manager


def query_command(args: Any) -> int:
    """Execute query command."""
    return asyncio.run(query_async(args))


def _format_time(timestamp: float) -> str:
    if timestamp <= 0:
        return "never"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


async def query_async(args: Any) -> int:
    """Async query implementation."""
    async with open_manager(args) as manager:
        controller = manager.controller
        registry = controller.registry
        orphaned = set(registry.orphaned_ids())

        installed = [
            package_id
            for package_id in registry.installed_ids()
            if not args.targets or package_id in args.targets
        ]
        if not installed:
            print("No packages installed")
            return 0

        for package_id in sorted(installed):
            flags = registry.get_flags(package_id)
            status = controller.status(package_id).value
            line = f"{package_id} {flags.version or '?'} [{status}]"
            if package_id in orphaned:
                line += " (not in manifest)"
            print(line)

            if args.verbose or args.info:
                definition = registry.get_definition(package_id)
                if definition and definition.version != flags.version:
                    print(f"    available: {definition.version}")
                print(f"    updated:   {_format_time(flags.last_updated)}")

        print(f"\nLast refresh: {_format_time(registry.state_store.state.last_refresh)}")

    return 0
