# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Logging configuration for harness entry points.

Library modules only create module-level loggers; entry points (the CLI,
the pytest-bdd scenario module) call ``configure_logging`` once.
"""

from __future__ import annotations

import logging
import os
import sys

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def configure_logging(default_level: str = "INFO") -> str:
    """Configure root logging from the O11Y_LOG_LEVEL environment variable.

    Invalid levels produce a warning on stderr and fall back to
    ``default_level``.

    Returns:
        The effective level name.

    Example:
        >>> configure_logging()
        >>> logger.info("Collector started", extra={"port": 54321})
    """
    log_level = os.getenv("O11Y_LOG_LEVEL", default_level).upper()

    if log_level not in VALID_LOG_LEVELS:
        print(
            f"Warning: Invalid O11Y_LOG_LEVEL '{log_level}', using {default_level}. "
            f"Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}",
            file=sys.stderr,
        )
        log_level = default_level

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return log_level


__all__: list[str] = ["VALID_LOG_LEVELS", "configure_logging"]
