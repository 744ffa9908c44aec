# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Component Enumeration.

Defines the canonical component types of the test harness.
Used for error context and log correlation.
"""

from enum import Enum


class EnumHarnessComponent(str, Enum):
    """Components of the worker observability harness.

    Attributes:
        TELEMETRY_COLLECTOR: Mock OpenTelemetry collector (OTLP/HTTP JSON)
        PLATFORM_API: Mock Cloudflare GraphQL analytics API
        SANDBOX: Sandboxed worker runtime driven as a subprocess
        POLLER: Bounded predicate poller
        CONFIGURATION: Harness settings and sandbox configuration
    """

    TELEMETRY_COLLECTOR = "telemetry_collector"
    PLATFORM_API = "platform_api"
    SANDBOX = "sandbox"
    POLLER = "poller"
    CONFIGURATION = "configuration"


__all__ = ["EnumHarnessComponent"]
