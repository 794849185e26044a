"""
spoons secrets command (-K).

spoons -K                   List secrets declared by installed packages
spoons -K <key> <value>     Set a secret
spoons -K <key> --clear     Clear a secret
"""

import asyncio
import sys
from typing import Any

from powerspoons.storage.secrets import mask_secret
from spoons.commands import open_manager


def secrets_command(args: Any) -> int:
    """Execute secrets command."""
    if len(args.targets) > 2:
        print("Usage: spoons -K [key [value]] [--clear]", file=sys.stderr)
        return 1
    return asyncio.run(secrets_async(args))


async def secrets_async(args: Any) -> int:
    async with open_manager(args) as manager:
        api = manager.controller.api

        if not args.targets:
            registry = manager.controller.registry
            listed = False
            for package_id in registry.installed_ids():
                definition = registry.get_definition(package_id)
                if definition is None:
                    continue
                for secret in definition.secrets:
                    value = api.get_secret(secret.key)
                    print(f"{package_id}: {secret.label} [{secret.key}] {mask_secret(value)}")
                    listed = True
            if not listed:
                print("No secrets declared by installed packages")
            return 0

        key = args.targets[0]
        if args.clear:
            value = None
        elif len(args.targets) == 2:
            value = args.targets[1]
        else:
            print(f"{key}: {mask_secret(api.get_secret(key))}")
            return 0

        if not api.set_secret(key, value):
            print(f"Error: failed to save secret '{key}'", file=sys.stderr)
            return 1

        print(f"{key}: {mask_secret(api.get_secret(key))}")
    return 0
