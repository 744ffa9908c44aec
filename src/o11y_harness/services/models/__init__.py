# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Models used by the test-double services."""

from o11y_harness.services.models.model_captured_payload import ModelCapturedPayload
from o11y_harness.services.models.model_fixture_route import (
    ModelFixtureRoute,
    ModelLoadedFixture,
)

__all__: list[str] = [
    "ModelCapturedPayload",
    "ModelFixtureRoute",
    "ModelLoadedFixture",
]
