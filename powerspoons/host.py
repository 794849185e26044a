"""
Host surface seam.

The manager never talks to a UI directly. Notifications and sounds go through
a Host; the default one writes them to the log.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Host(Protocol):
    """What the embedding application provides to the manager."""

    def notify(self, title: str, text: str = "", **options: Any) -> None: ...

    def play_sound(self, kind: str) -> None: ...


class LoggingHost:
    """Host that records notifications in the log (CLI and headless use)."""

    def notify(self, title: str, text: str = "", **options: Any) -> None:
        logger.info("[%s] %s", title, text)

    def play_sound(self, kind: str) -> None:
        logger.debug("Sound requested: %s", kind)
