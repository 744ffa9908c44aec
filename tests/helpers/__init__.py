# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Test helpers for o11y_harness tests.

Available Utilities:
    OTLP Documents:
        - make_export_document: Build an OTLP/JSON metrics export document
        - encode: Serialize a document to a request body
        - fake_worker_command: Sandbox command launching the stand-in worker

    Log Helpers:
        - filter_component_records: Filter log records from one harness module

    Scenarios:
        - ScenarioRun: ScenarioContext paired with the loop its steps run on
"""

from tests.helpers.log_helpers import filter_component_records
from tests.helpers.otlp_documents import (
    FAKE_WORKER_PATH,
    encode,
    fake_worker_command,
    make_export_document,
)
from tests.helpers.scenario_run import ScenarioRun

__all__ = [
    "FAKE_WORKER_PATH",
    "ScenarioRun",
    "encode",
    "fake_worker_command",
    "filter_component_records",
    "make_export_document",
]
