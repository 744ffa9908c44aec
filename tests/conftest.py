# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for o11y_harness tests.

Marker Application:
    Tests under tests/unit/** get ``pytest.mark.unit`` and tests under
    tests/integration/** get ``pytest.mark.integration``, applied in
    pytest_collection_modifyitems because a module-level pytestmark in a
    conftest does not propagate to other files.

    # Run only unit tests
    pytest -m unit
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from o11y_harness.services.service_platform_api import (
    DEFAULT_FIXTURE_DIR,
    ServicePlatformApi,
)
from o11y_harness.services.service_telemetry_collector import ServiceTelemetryCollector

_DIRECTORY_MARKERS = {
    "unit": ("tests", "unit"),
    "integration": ("tests", "integration"),
}


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Add the unit/integration marker matching each test's directory."""
    for item in items:
        parts = Path(str(item.path)).parts
        for marker_name, (root, sub) in _DIRECTORY_MARKERS.items():
            in_dir = any(
                parts[i] == root and parts[i + 1] == sub for i in range(len(parts) - 1)
            )
            if in_dir and not any(m.name == marker_name for m in item.iter_markers()):
                item.add_marker(getattr(pytest.mark, marker_name))


@pytest.fixture
def fixture_dir() -> Path:
    """Directory holding the packaged platform API fixtures."""
    return DEFAULT_FIXTURE_DIR


@pytest.fixture
async def collector() -> AsyncGenerator[ServiceTelemetryCollector, None]:
    """A started telemetry collector, disposed after the test."""
    service = ServiceTelemetryCollector()
    await service.start()
    try:
        yield service
    finally:
        await service.dispose()


@pytest.fixture
async def platform_api() -> AsyncGenerator[ServicePlatformApi, None]:
    """A started platform API double, disposed after the test."""
    service = ServicePlatformApi()
    await service.start()
    try:
        yield service
    finally:
        await service.dispose()
