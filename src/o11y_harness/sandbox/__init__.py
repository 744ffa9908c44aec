# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Sandboxed worker runtime driver and its configuration model."""

from o11y_harness.sandbox.driver_sandbox import SandboxDriver, find_free_port
from o11y_harness.sandbox.model_sandbox_config import (
    BINDING_CLOUDFLARE_API_KEY,
    BINDING_CLOUDFLARE_API_URL,
    BINDING_METRICS_URL,
    DEFAULT_SANDBOX_COMMAND,
    DEFAULT_SCRIPT_PATH,
    DEFAULT_TRIGGER_PATH,
    ModelSandboxConfig,
)

__all__: list[str] = [
    "BINDING_CLOUDFLARE_API_KEY",
    "BINDING_CLOUDFLARE_API_URL",
    "BINDING_METRICS_URL",
    "DEFAULT_SANDBOX_COMMAND",
    "DEFAULT_SCRIPT_PATH",
    "DEFAULT_TRIGGER_PATH",
    "ModelSandboxConfig",
    "SandboxDriver",
    "find_free_port",
]
