# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enumerations for the worker observability harness."""

from o11y_harness.enums.enum_harness_component import EnumHarnessComponent
from o11y_harness.enums.enum_harness_error_code import EnumHarnessErrorCode

__all__: list[str] = [
    "EnumHarnessComponent",
    "EnumHarnessErrorCode",
]
