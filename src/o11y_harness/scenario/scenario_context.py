# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Per-scenario harness context.

One ScenarioContext is built for every scenario and passed explicitly to
each step. It owns fresh instances of both test doubles and the sandbox
driver, so nothing is shared between scenarios and there is no
module-level state to leak.

Scenario Flow:
    1. start_platform_api() / start_collector()  (Given)
    2. trigger(): start_sandbox() if needed (config built from the running
       doubles' URLs), then one scheduled execution  (When)
    3. wait_for_metrics() then assert on the collector  (Then)
    4. dispose() in teardown, whatever the outcome
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import SecretStr

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, SandboxConfigurationError
from o11y_harness.models.model_harness_settings import ModelHarnessSettings
from o11y_harness.sandbox.driver_sandbox import SandboxDriver
from o11y_harness.sandbox.model_sandbox_config import ModelSandboxConfig
from o11y_harness.services.models.model_captured_payload import ModelCapturedPayload
from o11y_harness.services.service_platform_api import ServicePlatformApi
from o11y_harness.services.service_telemetry_collector import ServiceTelemetryCollector

logger = logging.getLogger(__name__)

DEFAULT_FAKE_API_KEY = "fake-cloudflare-api-key"


class ScenarioContext:
    """Explicit per-scenario state: both doubles, the sandbox and settings.

    Attributes:
        settings: Harness settings (poll timings, worker script, fixtures)
        collector: Telemetry collector double
        platform_api: Platform analytics API double
        sandbox: Sandbox driver
        sandbox_overrides: ModelSandboxConfig fields applied over the derived values
        last_trigger_response: Body returned by the last trigger, if any
    """

    def __init__(
        self,
        settings: ModelHarnessSettings | None = None,
        sandbox_overrides: Mapping[str, object] | None = None,
        api_key: str = DEFAULT_FAKE_API_KEY,
    ) -> None:
        self.settings: ModelHarnessSettings = settings or ModelHarnessSettings()
        self.collector = ServiceTelemetryCollector()
        self.platform_api = ServicePlatformApi(fixture_dir=self.settings.fixture_dir)
        self.sandbox = SandboxDriver()
        self.last_trigger_response: str | None = None
        self.sandbox_overrides: dict[str, object] = dict(sandbox_overrides or {})
        self._api_key = api_key

    async def start_platform_api(self) -> str:
        """Start the platform API double and return its URL."""
        await self.platform_api.start()
        return self.platform_api.url

    async def start_collector(self) -> str:
        """Start the collector double and return its metrics URL."""
        await self.collector.start()
        return self.collector.metrics_url

    def build_sandbox_config(self) -> ModelSandboxConfig:
        """Build the sandbox configuration from the running doubles.

        Raises:
            SandboxConfigurationError: If a double is not running, or the
                resulting configuration is invalid.
        """
        missing = []
        if not self.platform_api.is_running:
            missing.append("cloudflare_api_url")
        if not self.collector.is_running:
            missing.append("metrics_url")
        if missing:
            raise SandboxConfigurationError(
                "Cannot configure the sandbox before its upstream doubles are started: "
                f"missing {', '.join(missing)}",
                context=ModelHarnessErrorContext(
                    component=EnumHarnessComponent.CONFIGURATION,
                    operation="build_sandbox_config",
                ),
                missing_fields=missing,
            )

        values: dict[str, object] = {
            "cloudflare_api_url": self.platform_api.url,
            "metrics_url": self.collector.metrics_url,
            "cloudflare_api_key": SecretStr(self._api_key),
            "script_path": self.settings.worker_script,
            "startup_timeout_seconds": self.settings.sandbox_startup_timeout_seconds,
        }
        values.update(self.sandbox_overrides)
        return ModelSandboxConfig.from_mapping(values)

    async def start_sandbox(self) -> str:
        """Start the sandbox against the running doubles and return its URL."""
        await self.sandbox.start(self.build_sandbox_config())
        return self.sandbox.base_url

    async def trigger(self) -> str:
        """Start the sandbox (once) and fire exactly one scheduled execution."""
        if not self.sandbox.is_running:
            await self.start_sandbox()
        self.last_trigger_response = await self.sandbox.trigger()
        return self.last_trigger_response

    async def wait_for_metrics(self, min_count: int = 1) -> tuple[ModelCapturedPayload, ...]:
        """Poll the collector until ``min_count`` payloads arrived.

        Raises:
            PollTimeoutError: If they did not arrive within the configured timeout.
        """
        return await self.collector.wait_for_payloads(
            min_count,
            poll_interval_seconds=self.settings.poll_interval_seconds,
            timeout_seconds=self.settings.poll_timeout_seconds,
        )

    async def dispose(self) -> None:
        """Dispose sandbox, collector and platform API, in that order.

        Every disposal is attempted even if an earlier one fails; the first
        failure is re-raised afterwards.
        """
        first_error: BaseException | None = None
        for name, dispose in (
            ("sandbox", self.sandbox.dispose),
            ("collector", self.collector.dispose),
            ("platform_api", self.platform_api.dispose),
        ):
            try:
                await dispose()
            except Exception as e:
                logger.exception("Failed to dispose %s", name)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error


__all__: list[str] = ["DEFAULT_FAKE_API_KEY", "ScenarioContext"]
