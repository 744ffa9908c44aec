# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Captured telemetry payload model."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ModelCapturedPayload(BaseModel):
    """One telemetry export document received by the collector double.

    Instances are frozen and appended to an insertion-ordered history owned
    by exactly one collector. The collector hands out copies, so the
    stored ``document`` is never changed by readers. The name sets are
    extracted once at ingestion and are what the collector indexes rebuild
    from.

    Attributes:
        sequence: 0-based position in the collector history
        received_at: UTC time at which the body finished buffering
        raw: Request body bytes exactly as received
        document: Decoded OTLP/JSON export document
        metric_names: Metric names declared in ``document``
        scope_names: Instrumentation scope names declared in ``document``
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sequence: int = Field(ge=0, description="Position in the collector history")
    received_at: datetime = Field(description="UTC time the body was fully read")
    raw: bytes = Field(repr=False, description="Request body as received")
    document: dict[str, object] = Field(description="Decoded export document")
    metric_names: frozenset[str] = Field(
        default=frozenset(), description="Metric names declared in the document"
    )
    scope_names: frozenset[str] = Field(
        default=frozenset(), description="Scope names declared in the document"
    )


__all__: list[str] = ["ModelCapturedPayload"]
