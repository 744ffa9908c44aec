# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Type-safe environment variable parsing.

Unset or blank variables fall back to the supplied default. Set-but-invalid
values raise SandboxConfigurationError so a misconfigured run fails before
any double or sandbox is started instead of silently using a default.
"""

from __future__ import annotations

import math
import os

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, SandboxConfigurationError


def _config_context(env_var: str) -> ModelHarnessErrorContext:
    return ModelHarnessErrorContext(
        component=EnumHarnessComponent.CONFIGURATION,
        operation="parse_env",
        target_name=env_var,
    )


def parse_env_float(
    env_var: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Parse a float environment variable with optional bounds.

    Args:
        env_var: Environment variable name.
        default: Value returned when the variable is unset or blank.
        min_value: Inclusive lower bound, if any.
        max_value: Inclusive upper bound, if any.

    Returns:
        The parsed value, or ``default``.

    Raises:
        SandboxConfigurationError: If the value is not a finite float or is out
            of range.
    """
    raw = os.environ.get(env_var)
    if raw is None or not raw.strip():
        return default

    try:
        value = float(raw)
    except ValueError as e:
        raise SandboxConfigurationError(
            f"Invalid value for {env_var}: expected a number, got {raw!r}",
            context=_config_context(env_var),
        ) from e

    if not math.isfinite(value):
        raise SandboxConfigurationError(
            f"Invalid value for {env_var}: expected a finite number, got {raw!r}",
            context=_config_context(env_var),
        )

    if min_value is not None and value < min_value:
        raise SandboxConfigurationError(
            f"Invalid value for {env_var}: {value} is below minimum {min_value}",
            context=_config_context(env_var),
            min_value=min_value,
        )
    if max_value is not None and value > max_value:
        raise SandboxConfigurationError(
            f"Invalid value for {env_var}: {value} is above maximum {max_value}",
            context=_config_context(env_var),
            max_value=max_value,
        )
    return value


def parse_env_str(env_var: str, default: str) -> str:
    """Return a stripped string environment variable or ``default`` when unset/blank."""
    raw = os.environ.get(env_var)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


__all__: list[str] = ["parse_env_float", "parse_env_str"]
