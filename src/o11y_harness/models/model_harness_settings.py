# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Settings Model.

Process-wide knobs for a test run, read from environment variables:

    O11Y_POLL_INTERVAL_SECONDS             poller interval (default 0.1)
    O11Y_POLL_TIMEOUT_SECONDS              poller deadline (default 4.5)
    O11Y_SANDBOX_STARTUP_TIMEOUT_SECONDS   sandbox readiness deadline (default 30)
    O11Y_WORKER_SCRIPT                     built worker bundle
    O11Y_FIXTURE_DIR                       platform API fixture directory

The log level (O11Y_LOG_LEVEL) is handled by ``configure_logging``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from o11y_harness.sandbox.model_sandbox_config import DEFAULT_SCRIPT_PATH
from o11y_harness.services.service_platform_api import DEFAULT_FIXTURE_DIR
from o11y_harness.utils.util_env_parsing import parse_env_float, parse_env_str
from o11y_harness.utils.util_polling import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
)


class ModelHarnessSettings(BaseModel):
    """Settings shared by every scenario in a test run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0.0, allow_inf_nan=False
    )
    poll_timeout_seconds: float = Field(
        default=DEFAULT_POLL_TIMEOUT_SECONDS, ge=0.0, allow_inf_nan=False
    )
    sandbox_startup_timeout_seconds: float = Field(
        default=30.0, gt=0.0, allow_inf_nan=False
    )
    worker_script: str = Field(default=DEFAULT_SCRIPT_PATH, min_length=1)
    fixture_dir: Path = Field(default=DEFAULT_FIXTURE_DIR)

    @classmethod
    def from_env(cls) -> ModelHarnessSettings:
        """Build settings from O11Y_* environment variables.

        Raises:
            SandboxConfigurationError: If a set variable has an invalid value.
        """
        return cls(
            poll_interval_seconds=parse_env_float(
                "O11Y_POLL_INTERVAL_SECONDS",
                DEFAULT_POLL_INTERVAL_SECONDS,
                min_value=0.001,
            ),
            poll_timeout_seconds=parse_env_float(
                "O11Y_POLL_TIMEOUT_SECONDS",
                DEFAULT_POLL_TIMEOUT_SECONDS,
                min_value=0.0,
            ),
            sandbox_startup_timeout_seconds=parse_env_float(
                "O11Y_SANDBOX_STARTUP_TIMEOUT_SECONDS",
                30.0,
                min_value=0.1,
                max_value=600.0,
            ),
            worker_script=parse_env_str("O11Y_WORKER_SCRIPT", DEFAULT_SCRIPT_PATH),
            fixture_dir=Path(parse_env_str("O11Y_FIXTURE_DIR", str(DEFAULT_FIXTURE_DIR))),
        )


__all__: list[str] = ["ModelHarnessSettings"]
