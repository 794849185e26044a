"""
Logging Setup.

Configures the root logger for the manager and its packages: a stderr console
handler always, plus a rotating log file in base_dir when log_to_file is set.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from powerspoons.config import ManagerConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 3


def setup_logging(config: ManagerConfig, verbose: bool = False) -> None:
    """
    Configure the root logger: console always, rotating file when enabled.
    """
    level = logging.DEBUG if verbose else config.log_level.upper()

    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config.log_to_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.debug("Logging configured.")
