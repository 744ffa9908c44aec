# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness-wide models."""

from o11y_harness.models.model_harness_settings import ModelHarnessSettings

__all__: list[str] = ["ModelHarnessSettings"]
