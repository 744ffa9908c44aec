# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Platform API fixture routing models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ModelFixtureRoute(BaseModel):
    """One row of the platform API routing table.

    A request body containing ``marker`` is answered with the contents of
    ``fixture_file``. Route order in the table is the match priority.

    Attributes:
        name: Route identifier (used in logs and served counters)
        marker: Substring looked up in the raw request body
        fixture_file: File name relative to the fixture directory
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Route identifier")
    marker: str = Field(min_length=1, description="Substring to look for in the body")
    fixture_file: str = Field(min_length=1, description="Fixture file name")


class ModelLoadedFixture(BaseModel):
    """A fixture route together with the bytes loaded for it at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    route: ModelFixtureRoute
    content: bytes = Field(repr=False)


__all__: list[str] = ["ModelFixtureRoute", "ModelLoadedFixture"]
