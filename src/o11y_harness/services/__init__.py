# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Test-double services.

Exports:
    ServiceRequestCapture: Base aiohttp listener that buffers full bodies
    ServiceTelemetryCollector: Mock OTLP/HTTP metrics collector
    ServicePlatformApi: Mock platform analytics API with fixture routing
"""

from o11y_harness.services.service_platform_api import (
    DEFAULT_FIXTURE_DIR,
    DEFAULT_FIXTURE_ROUTES,
    DEFAULT_ROUTE,
    ServicePlatformApi,
    resolve_route,
)
from o11y_harness.services.service_request_capture import ServiceRequestCapture
from o11y_harness.services.service_telemetry_collector import (
    METRICS_PATH,
    ServiceTelemetryCollector,
    decode_export_document,
    extract_metric_names,
    extract_scope_names,
)

__all__: list[str] = [
    "DEFAULT_FIXTURE_DIR",
    "DEFAULT_FIXTURE_ROUTES",
    "DEFAULT_ROUTE",
    "METRICS_PATH",
    "ServicePlatformApi",
    "ServiceRequestCapture",
    "ServiceTelemetryCollector",
    "decode_export_document",
    "extract_metric_names",
    "extract_scope_names",
    "resolve_route",
]
