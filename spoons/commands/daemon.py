"""
spoons daemon command (-D).

Start every enabled package and keep them running, refreshing the manifest
whenever the refresh interval elapses, until interrupted.
"""

import asyncio
import contextlib
import logging
from typing import Any

from powerspoons.package.controller import LifecycleController
from spoons.commands import open_manager

logger = logging.getLogger(__name__)

CHECK_INTERVAL = 60.0


def daemon_command(args: Any) -> int:
    """Execute daemon command."""
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(daemon_async(args))
    return 0


async def refresh_loop(
    controller: LifecycleController, check_interval: float = CHECK_INTERVAL
) -> None:
    """Periodically run the automatic manifest refresh."""
    while True:
        try:
            await asyncio.sleep(check_interval)
            await controller.auto_refresh_if_due()
        except asyncio.CancelledError:
            break
        except Exception:
            logger.exception("Auto-refresh check failed")


async def daemon_async(args: Any) -> None:
    async with open_manager(args) as manager:
        controller = manager.controller
        result = await controller.startup()
        for warning in result.warnings:
            logger.warning("%s", warning)

        running = ", ".join(sorted(controller.instances)) or "none"
        logger.info("Running packages: %s", running)
        for package_id in sorted(controller.instances):
            status = controller.package_status(package_id)
            if status is not None:
                logger.info("%s: %s", package_id, status)
            hotkeys = controller.hotkey_spec(package_id)
            if hotkeys is not None:
                logger.info("%s hotkeys: %s", package_id, hotkeys)

        task = asyncio.create_task(refresh_loop(controller))
        try:
            await task
        finally:
            task.cancel()
