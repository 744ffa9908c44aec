# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Fixtures for the Gherkin worker scenarios.

Each scenario gets its own event loop, owned by ``scenario_run`` and
closed in its teardown after the ScenarioContext has been disposed. The
sandbox runs the stand-in worker unless a step overrides its command.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator

import pytest

from o11y_harness.models import ModelHarnessSettings
from o11y_harness.runtime import configure_logging
from o11y_harness.scenario import ScenarioContext
from tests.helpers import ScenarioRun, fake_worker_command


@pytest.fixture(scope="session", autouse=True)
def _scenario_logging() -> None:
    configure_logging()


@pytest.fixture
def scenario_run() -> Iterator[ScenarioRun]:
    """Fresh ScenarioContext on a fresh loop, disposed whatever the outcome."""
    loop = asyncio.new_event_loop()
    ctx = ScenarioContext(
        settings=ModelHarnessSettings.from_env(),
        sandbox_overrides={"command": fake_worker_command("publish")},
    )
    run = ScenarioRun(ctx=ctx, loop=loop)
    try:
        yield run
    finally:
        try:
            loop.run_until_complete(ctx.dispose())
        finally:
            loop.close()
