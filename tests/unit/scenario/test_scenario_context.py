# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for ScenarioContext wiring and teardown."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from o11y_harness.errors import SandboxConfigurationError
from o11y_harness.models import ModelHarnessSettings
from o11y_harness.scenario import ScenarioContext


class TestBuildSandboxConfig:
    def test_before_doubles_start(self) -> None:
        ctx = ScenarioContext()

        with pytest.raises(SandboxConfigurationError) as exc_info:
            ctx.build_sandbox_config()

        assert exc_info.value.extra_context["missing_fields"] == [
            "cloudflare_api_url",
            "metrics_url",
        ]

    async def test_only_platform_api_started(self) -> None:
        ctx = ScenarioContext()
        await ctx.start_platform_api()
        try:
            with pytest.raises(SandboxConfigurationError) as exc_info:
                ctx.build_sandbox_config()
        finally:
            await ctx.dispose()

        assert exc_info.value.extra_context["missing_fields"] == ["metrics_url"]

    async def test_uses_running_double_urls(self) -> None:
        settings = ModelHarnessSettings(worker_script="./dist/w.mjs")
        ctx = ScenarioContext(settings=settings, sandbox_overrides={"host": "localhost"})
        api_url = await ctx.start_platform_api()
        metrics_url = await ctx.start_collector()
        try:
            config = ctx.build_sandbox_config()
        finally:
            await ctx.dispose()

        assert config.cloudflare_api_url == api_url
        assert config.metrics_url == metrics_url
        assert metrics_url.endswith("/v1/metrics")
        assert config.script_path == "./dist/w.mjs"
        assert config.host == "localhost"


class TestContextIsolation:
    def test_contexts_share_nothing(self) -> None:
        first = ScenarioContext()
        second = ScenarioContext()

        assert first.collector is not second.collector
        assert first.platform_api is not second.platform_api
        assert first.sandbox is not second.sandbox


class TestDispose:
    async def test_dispose_fresh_context(self) -> None:
        await ScenarioContext().dispose()

    async def test_later_disposals_run_after_failure(self) -> None:
        ctx = ScenarioContext()
        ctx.sandbox.dispose = AsyncMock(side_effect=RuntimeError("stuck"))  # type: ignore[method-assign]
        ctx.collector.dispose = AsyncMock()  # type: ignore[method-assign]
        ctx.platform_api.dispose = AsyncMock()  # type: ignore[method-assign]

        with pytest.raises(RuntimeError, match="stuck"):
            await ctx.dispose()

        ctx.collector.dispose.assert_awaited_once()
        ctx.platform_api.dispose.assert_awaited_once()
