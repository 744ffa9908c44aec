# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Scenario orchestration glue."""

from o11y_harness.scenario.scenario_context import DEFAULT_FAKE_API_KEY, ScenarioContext

__all__: list[str] = ["DEFAULT_FAKE_API_KEY", "ScenarioContext"]
