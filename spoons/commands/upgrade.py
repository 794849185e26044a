"""
spoons upgrade command (-U).

Download fresh code for installed packages.
"""

import asyncio
from typing import Any

from spoons.commands import ensure_manifest, open_manager, report


def upgrade_command(args: Any) -> int:
    """
    Execute upgrade command.

    With no targets, every installed package whose manifest version differs
    from the installed one is updated.
    """
    return asyncio.run(upgrade_async(args))


async def upgrade_async(args: Any) -> int:
    """Async upgrade implementation."""
    fail_count = 0

    async with open_manager(args) as manager:
        controller = manager.controller
        registry = controller.registry

        await ensure_manifest(manager)

        targets = list(args.targets)
        if not targets:
            for package_id in registry.installed_ids():
                definition = registry.get_definition(package_id)
                if definition and definition.version != registry.get_flags(package_id).version:
                    targets.append(package_id)

        if not targets:
            print("Nothing to upgrade")
            return 0

        for package_id in targets:
            result = await controller.update(package_id)
            version = registry.get_flags(package_id).version
            if not report(result, f"Updated {package_id} to {version}", args.verbose):
                fail_count += 1

    return 0 if fail_count == 0 else 1
