"""
spoons sync commands (-Sy, -Ss, -Si).

Refresh and inspect the package list.
"""

import asyncio
import sys
from typing import Any

from spoons.commands import ensure_manifest, open_manager, report


def refresh_command(args: Any) -> int:
    """Execute manual manifest refresh."""
    return asyncio.run(refresh_async(args))


async def refresh_async(args: Any) -> int:
    async with open_manager(args) as manager:
        result = await manager.controller.refresh_manifest(manual=True)
        count = len(manager.controller.registry.definitions())
        return 0 if report(result, f"Package list refreshed ({count} packages)", args.verbose) else 1


def search_command(args: Any) -> int:
    """Execute catalog search."""
    return asyncio.run(search_async(args))


async def search_async(args: Any) -> int:
    query = " ".join(args.targets).lower()

    async with open_manager(args) as manager:
        if args.refresh:
            await manager.controller.refresh_manifest(manual=True)
        else:
            await ensure_manifest(manager)

        registry = manager.controller.registry
        matches = [
            definition
            for definition in registry.definitions()
            if not query
            or query in definition.id.lower()
            or query in definition.name.lower()
            or query in definition.description.lower()
        ]

        for definition in matches:
            marker = " [installed]" if registry.get_flags(definition.id).installed else ""
            print(f"{definition.id} {definition.version}{marker}")
            if definition.description:
                print(f"    {definition.description}")

    return 0 if matches else 1


def info_command(args: Any) -> int:
    """Execute package info."""
    if not args.targets:
        print("Error: No targets specified", file=sys.stderr)
        print("Usage: spoons -Si <id>...", file=sys.stderr)
        return 1
    return asyncio.run(info_async(args))


async def info_async(args: Any) -> int:
    fail_count = 0

    async with open_manager(args) as manager:
        await ensure_manifest(manager)
        controller = manager.controller

        for package_id in args.targets:
            definition = controller.registry.get_definition(package_id)
            if definition is None:
                print(f"Error: package '{package_id}' not found", file=sys.stderr)
                fail_count += 1
                continue

            print(f"Id          : {definition.id}")
            print(f"Name        : {definition.name}")
            print(f"Version     : {definition.version}")
            print(f"Description : {definition.description or '-'}")
            print(f"Status      : {controller.status(package_id).value}")
            if definition.readme:
                print(f"README      : {definition.readme}")
            if definition.hotkey:
                print(f"Hotkey      : {definition.hotkey}")
            for hotkey in definition.hotkeys:
                print(f"Action      : {hotkey.label} ({hotkey.default or 'unbound'})")
            for secret in definition.secrets:
                print(f"Secret      : {secret.label} [{secret.key}]")
            print()

    return 0 if fail_count == 0 else 1
