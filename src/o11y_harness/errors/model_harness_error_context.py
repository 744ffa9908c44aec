# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Harness Error Context Configuration Model.

This module defines the configuration model for harness error context,
bundling the common structured fields so error constructors stay small
while remaining strongly typed.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from o11y_harness.enums import EnumHarnessComponent


class ModelHarnessErrorContext(BaseModel):
    """Structured context attached to harness errors.

    Attributes:
        component: Harness component that raised the error
        operation: Operation being performed (start, trigger, decode, ...)
        target_name: Target endpoint, file or process
        correlation_id: Correlation ID tying the error to log lines

    Example:
        >>> context = ModelHarnessErrorContext(
        ...     component=EnumHarnessComponent.PLATFORM_API,
        ...     operation="load_fixtures",
        ...     target_name="d1_analytics.json",
        ... )
        >>> raise StartupFixtureError("Fixture missing", context=context)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    component: Optional[EnumHarnessComponent] = Field(
        default=None,
        description="Harness component that raised the error",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Target endpoint, file or process",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Correlation ID for log correlation",
    )


__all__ = ["ModelHarnessErrorContext"]
