# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Utility modules for the worker observability harness.

This package provides:
    - util_correlation: Correlation ID generation
    - util_env_parsing: Type-safe environment variable parsing
    - util_polling: Bounded predicate polling (wait_until)
"""

from o11y_harness.utils.util_correlation import generate_correlation_id
from o11y_harness.utils.util_env_parsing import parse_env_float, parse_env_str
from o11y_harness.utils.util_polling import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    TIMEOUT_MESSAGE,
    wait_until,
)

__all__: list[str] = [
    "generate_correlation_id",
    "parse_env_float",
    "parse_env_str",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_POLL_TIMEOUT_SECONDS",
    "TIMEOUT_MESSAGE",
    "wait_until",
]
