# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Worker Observability Harness - test doubles for a sandboxed worker.

This package runs an externally-built, sandboxed worker against simulated
upstreams and lets tests assert on the telemetry it exports:

- ServiceTelemetryCollector: mock OTLP/HTTP metrics collector with a
  metric-name index rebuilt over the full payload history
- ServicePlatformApi: mock platform analytics API answering canned fixtures
  by body marker
- SandboxDriver: start/trigger/dispose for the worker runtime process
- wait_until: bounded predicate poller for eventually-observable state
- ScenarioContext: explicit per-scenario wiring of all of the above
"""

__all__: list[str] = []
