# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Error Code Enumeration."""

from enum import Enum


class EnumHarnessErrorCode(str, Enum):
    """Error classification codes carried by every HarnessError."""

    OPERATION_FAILED = "OPERATION_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    PROTOCOL_DECODE_ERROR = "PROTOCOL_DECODE_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    FIXTURE_UNAVAILABLE = "FIXTURE_UNAVAILABLE"
    BIND_FAILED = "BIND_FAILED"
    NOT_RUNNING = "NOT_RUNNING"
    SANDBOX_STARTUP_FAILED = "SANDBOX_STARTUP_FAILED"
    SANDBOX_TRIGGER_FAILED = "SANDBOX_TRIGGER_FAILED"
    INVALID_STATE = "INVALID_STATE"


__all__ = ["EnumHarnessErrorCode"]
