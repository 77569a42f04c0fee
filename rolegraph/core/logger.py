"""Logging infrastructure for rolegraph.

Every module logs through a child of the ``rolegraph`` logger, so the CLI
(or a host application) configures output once with ``setup_logger``.
"""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Rotation for the optional log file
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5


def setup_logger(
    name: str = "rolegraph",
    log_dir: str = "./logs",
    level: str = "INFO",
    file_logging: bool = False,
    console_logging: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        name: Logger name
        log_dir: Directory for ``<name>.log`` when ``file_logging`` is on
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (``Settings.log_level``)
        file_logging: Also write to a rotating file (``Settings.file_logging``)
        console_logging: Write to stderr

    Returns:
        Configured logger instance

    Raises:
        ValueError: If the level is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    # Handlers are attached once per process
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []
    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
        ))
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``rolegraph`` namespace.

    Args:
        name: Component name, e.g. ``"graph"`` or ``"rolegraph.graph"``

    Returns:
        Logger instance
    """
    if name != "rolegraph" and not name.startswith("rolegraph."):
        name = f"rolegraph.{name}"
    return logging.getLogger(name)
