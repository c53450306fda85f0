from __future__ import annotations

import logging

PACKAGE_LOGGER = "tenantauth"

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Set the level of the ``tenantauth`` logger tree.

    Notes:
    - stdlib logging only; the host application owns handlers and formatting.
    - ``TENANTAUTH_LOG_LEVEL=DEBUG`` shows key cache hits and token classification.
    - Token values are never logged at any level.
    """

    normalized = level.strip().upper()
    if normalized not in _LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(normalized)
    return logger
