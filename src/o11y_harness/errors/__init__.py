# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Errors Module.

Exports:
    ModelHarnessErrorContext: Configuration model for bundled error context
    HarnessError: Base harness error class
    SandboxConfigurationError: Missing or invalid configuration (fatal)
    ProtocolDecodeError: Malformed telemetry export body (recovered locally)
    PollTimeoutError: Polled condition not satisfied in time
    StartupFixtureError: Platform API fixture unreadable (fatal)
    DoubleStartupError: Test double could not bind its listener
    DoubleNotRunningError: Running-only property read before start
    SandboxStartupError: Sandboxed worker exited or never became ready
    SandboxTriggerError: Scheduled-execution round trip failed
    SandboxLifecycleError: Invalid sandbox lifecycle transition

Error Sanitization Guidelines:
    NEVER include the sandbox credential (``cloudflare_api_key``) in error
    messages or context. Configuration models keep it as a SecretStr; pass
    field names, never values.
"""

from o11y_harness.errors.harness_errors import (
    DoubleNotRunningError,
    DoubleStartupError,
    HarnessError,
    PollTimeoutError,
    ProtocolDecodeError,
    SandboxConfigurationError,
    SandboxLifecycleError,
    SandboxStartupError,
    SandboxTriggerError,
    StartupFixtureError,
)
from o11y_harness.errors.model_harness_error_context import ModelHarnessErrorContext

__all__: list[str] = [
    # Configuration model
    "ModelHarnessErrorContext",
    # Error classes
    "HarnessError",
    "SandboxConfigurationError",
    "ProtocolDecodeError",
    "PollTimeoutError",
    "StartupFixtureError",
    "DoubleStartupError",
    "DoubleNotRunningError",
    "SandboxStartupError",
    "SandboxTriggerError",
    "SandboxLifecycleError",
]
