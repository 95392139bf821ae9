"""
loguru sinks for the switchboard CLI and embedding applications.

Call ``setup_logging()`` once at startup (the CLI does this from config).
Library modules just ``from loguru import logger`` and never add sinks.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from switchboard.core.config import Config

_CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[protocol]} | {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace every loguru sink with a stderr sink and, if *log_file* is set,
    a rotating file sink whose lines carry the bound protocol.

    *level* is case-insensitive; *rotation* and *retention* use loguru's
    own syntax ("10 MB", "7 days").
    """
    level = level.upper()
    logger.remove()
    # Records bound without a protocol still need the key for the file format
    logger.configure(extra={"protocol": "-"})
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    if log_file:
        logger.add(log_file, level=level, format=_FILE_FORMAT, rotation=rotation, retention=retention)


def setup_logging_from_config(config: Config) -> None:
    """Apply the ``logging.*`` section of *config*."""
    setup_logging(
        level=str(config.get("logging.level", "WARNING")),
        log_file=config.get("logging.file") or None,
        rotation=str(config.get("logging.rotation", "10 MB")),
        retention=str(config.get("logging.retention", "7 days")),
    )
