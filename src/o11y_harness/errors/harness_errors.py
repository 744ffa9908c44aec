# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness-Specific Error Classes.

Error Hierarchy:
    HarnessError (base harness error)
    ├── SandboxConfigurationError
    ├── ProtocolDecodeError
    ├── PollTimeoutError
    ├── StartupFixtureError
    ├── DoubleStartupError
    ├── DoubleNotRunningError
    ├── SandboxStartupError
    ├── SandboxTriggerError
    └── SandboxLifecycleError

All errors:
    - Use EnumHarnessErrorCode for error classification
    - Support proper error chaining with `raise ... from e`
    - Accept ModelHarnessErrorContext for bundled context parameters
    - Keep extra keyword context in ``extra_context`` for assertions and logs

Only ProtocolDecodeError is recovered locally (by the telemetry collector,
which answers 400 and keeps serving). Every other error propagates to the
scenario and fails it; nothing here triggers a retry of the worker trigger.
"""

from typing import Optional
from uuid import UUID

from o11y_harness.enums import EnumHarnessErrorCode
from o11y_harness.errors.model_harness_error_context import ModelHarnessErrorContext


class HarnessError(Exception):
    """Base error class for the worker observability harness.

    Structured Fields (via ModelHarnessErrorContext):
        component: Harness component (collector, platform API, sandbox, ...)
        operation: Operation being performed
        correlation_id: Correlation ID for log correlation
        target_name: Target endpoint, file or process

    Example:
        >>> context = ModelHarnessErrorContext(
        ...     component=EnumHarnessComponent.SANDBOX,
        ...     operation="trigger",
        ...     target_name="http://127.0.0.1:8787/cdn-cgi/mf/scheduled",
        ... )
        >>> raise HarnessError("Operation failed", context=context, status=500)
    """

    default_error_code: EnumHarnessErrorCode = EnumHarnessErrorCode.OPERATION_FAILED

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumHarnessErrorCode] = None,
        context: Optional[ModelHarnessErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize HarnessError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to the class default)
            context: Bundled harness context (component, operation, etc.)
            **extra_context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code: EnumHarnessErrorCode = error_code or self.default_error_code
        self.context = context
        self.correlation_id: Optional[UUID] = (
            context.correlation_id if context is not None else None
        )

        structured_context: dict[str, object] = dict(extra_context)
        if context is not None:
            if context.component is not None:
                structured_context["component"] = context.component
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
        self.extra_context = structured_context

    def __str__(self) -> str:
        if self.correlation_id is not None:
            return f"{self.message} (correlation_id: {self.correlation_id})"
        return self.message


class SandboxConfigurationError(HarnessError):
    """Raised when sandbox or harness configuration is invalid or incomplete.

    Fatal: raised before any process is spawned or socket is bound.

    Example:
        >>> raise SandboxConfigurationError(
        ...     "Missing required field 'metrics_url'",
        ...     context=context,
        ...     missing_fields=["metrics_url"],
        ... )
    """

    default_error_code = EnumHarnessErrorCode.INVALID_CONFIGURATION


class ProtocolDecodeError(HarnessError):
    """Raised when a telemetry export body cannot be decoded.

    Covers invalid UTF-8, invalid JSON and documents whose
    ``resourceMetrics[].scopeMetrics[].metrics[].name`` shape is broken.
    """

    default_error_code = EnumHarnessErrorCode.PROTOCOL_DECODE_ERROR


class PollTimeoutError(HarnessError, TimeoutError):
    """Raised when a polled condition is not satisfied before its deadline.

    Also a builtin TimeoutError so generic timeout handling still applies.
    """

    default_error_code = EnumHarnessErrorCode.TIMEOUT_ERROR


class StartupFixtureError(HarnessError):
    """Raised when a platform API fixture cannot be loaded at startup."""

    default_error_code = EnumHarnessErrorCode.FIXTURE_UNAVAILABLE


class DoubleStartupError(HarnessError):
    """Raised when a test double fails to bind its listener."""

    default_error_code = EnumHarnessErrorCode.BIND_FAILED


class DoubleNotRunningError(HarnessError):
    """Raised when a running-only property (port, URL) is read before start."""

    default_error_code = EnumHarnessErrorCode.NOT_RUNNING


class SandboxStartupError(HarnessError):
    """Raised when the sandboxed worker exits early or never becomes ready."""

    default_error_code = EnumHarnessErrorCode.SANDBOX_STARTUP_FAILED


class SandboxTriggerError(HarnessError):
    """Raised when the scheduled-execution round trip fails.

    The trigger is never retried: a single execution either succeeds at
    the HTTP level or the scenario fails.
    """

    default_error_code = EnumHarnessErrorCode.SANDBOX_TRIGGER_FAILED


class SandboxLifecycleError(HarnessError):
    """Raised on invalid lifecycle transitions (double start, trigger when idle)."""

    default_error_code = EnumHarnessErrorCode.INVALID_STATE


__all__ = [
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
