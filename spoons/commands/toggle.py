"""
spoons toggle command (-T).

Enable disabled packages and disable enabled ones; absent packages are
installed.
"""

import asyncio
import sys
from typing import Any

from spoons.commands import ensure_manifest, open_manager, report


def toggle_command(args: Any) -> int:
    """Execute toggle command."""
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: spoons -T <id>...", file=sys.stderr)
        return 1

    return asyncio.run(toggle_async(args))


async def toggle_async(args: Any) -> int:
    """Async toggle implementation."""
    fail_count = 0

    async with open_manager(args) as manager:
        controller = manager.controller
        await ensure_manifest(manager)

        for package_id in args.targets:
            result = await controller.toggle_enabled(package_id)
            flags = controller.registry.get_flags(package_id)
            state = "enabled" if flags.enabled else "disabled"
            if not report(result, f"{package_id}: {state}", args.verbose):
                fail_count += 1

    return 0 if fail_count == 0 else 1
