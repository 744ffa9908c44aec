# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Runtime support for harness entry points."""

from o11y_harness.runtime.util_logging import VALID_LOG_LEVELS, configure_logging

__all__: list[str] = ["VALID_LOG_LEVELS", "configure_logging"]
