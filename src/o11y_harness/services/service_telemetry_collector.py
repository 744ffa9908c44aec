# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Mock OpenTelemetry Collector (OTLP/HTTP JSON metrics).

The sandboxed worker exports its metrics to this double. Every accepted
export document is appended to an ordered history, and the derived indexes
(distinct metric names, distinct instrumentation scope names) are rebuilt
from that full history before the sender is acknowledged.

Endpoint:
    - POST /v1/metrics: 200 text/plain "OK"; 400 "Bad Request: ..." when the
      body is not a decodable export document

Document Contract:
    Only ``resourceMetrics[].scopeMetrics[].metrics[].name`` is enforced
    (plus ``scopeMetrics[].scope.name`` when present). Repeated fields may
    be absent, matching proto3 JSON which omits empty lists. Everything
    else in the document is stored untouched.

Index Invariant:
    After every accepted delivery, ``get_metric_names()`` equals the union
    of metric names over all payloads received since the last ``start()``.
    The append and the rebuild run without an intervening suspension
    point, so concurrent deliveries on separate connections are each
    appended exactly once, in body-read completion order.

Observability Lag:
    The 200 response is a hand-off signal for the sender only. Readers of
    collected state use ``wait_for_payloads`` / ``wait_for_metric_name`` (or
    ``wait_until`` directly) rather than asserting right after a trigger.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import UTC, datetime

from aiohttp import web

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, ProtocolDecodeError
from o11y_harness.services.models.model_captured_payload import ModelCapturedPayload
from o11y_harness.services.service_request_capture import (
    DEFAULT_BIND_HOST,
    DEFAULT_CLIENT_MAX_SIZE,
    ServiceRequestCapture,
)
from o11y_harness.utils.util_polling import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    wait_until,
)

logger = logging.getLogger(__name__)

METRICS_PATH = "/v1/metrics"


def _decode_error(reason: str) -> ProtocolDecodeError:
    return ProtocolDecodeError(
        reason,
        context=ModelHarnessErrorContext(
            component=EnumHarnessComponent.TELEMETRY_COLLECTOR,
            operation="decode_export",
            target_name=METRICS_PATH,
        ),
    )


def _repeated(container: dict[str, object], key: str, where: str) -> list[object]:
    value = container.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _decode_error(
            f"{where}.{key} must be a list, got {type(value).__name__}"
        )
    return value


def _iter_scope_metrics(document: dict[str, object]) -> Iterator[dict[str, object]]:
    for r_index, resource_metrics in enumerate(
        _repeated(document, "resourceMetrics", "document")
    ):
        where = f"resourceMetrics[{r_index}]"
        if not isinstance(resource_metrics, dict):
            raise _decode_error(f"{where} must be an object")
        for s_index, scope_metrics in enumerate(
            _repeated(resource_metrics, "scopeMetrics", where)
        ):
            if not isinstance(scope_metrics, dict):
                raise _decode_error(f"{where}.scopeMetrics[{s_index}] must be an object")
            yield scope_metrics


def extract_metric_names(document: dict[str, object]) -> set[str]:
    """Return the metric names declared in one export document.

    Raises:
        ProtocolDecodeError: If the resource/scope/metric shape is broken or
            a metric has no string ``name``.
    """
    names: set[str] = set()
    for scope_metrics in _iter_scope_metrics(document):
        for m_index, metric in enumerate(
            _repeated(scope_metrics, "metrics", "scopeMetrics")
        ):
            if not isinstance(metric, dict):
                raise _decode_error(f"metrics[{m_index}] must be an object")
            name = metric.get("name")
            if not isinstance(name, str):
                raise _decode_error(f"metrics[{m_index}].name must be a string")
            names.add(name)
    return names


def extract_scope_names(document: dict[str, object]) -> set[str]:
    """Return the instrumentation scope names declared in one export document.

    Scopes without a ``scope`` object or without a string name are skipped.
    """
    names: set[str] = set()
    for scope_metrics in _iter_scope_metrics(document):
        scope = scope_metrics.get("scope")
        if isinstance(scope, dict) and isinstance(scope.get("name"), str):
            names.add(scope["name"])  # type: ignore[arg-type]
    return names


def decode_export_document(body: bytes) -> dict[str, object]:
    """Decode and shape-check a complete OTLP/JSON metrics export body.

    Raises:
        ProtocolDecodeError: If the body is not UTF-8 JSON describing an
            export document.
    """
    try:
        document = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise _decode_error(f"body is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise _decode_error(f"body is not valid JSON: {e}") from e
    except RecursionError as e:
        raise _decode_error("body nests too deeply to decode") from e

    if not isinstance(document, dict):
        raise _decode_error(
            f"export document must be a JSON object, got {type(document).__name__}"
        )
    extract_metric_names(document)
    return document


def _fresh_document(payload: ModelCapturedPayload) -> dict[str, object]:
    # Stored documents are never handed out; callers get a decode of the raw body.
    return json.loads(payload.raw)


class ServiceTelemetryCollector(ServiceRequestCapture):
    """Test double for an OpenTelemetry collector's OTLP/HTTP metrics endpoint.

    Example:
        >>> collector = ServiceTelemetryCollector()
        >>> await collector.start()
        >>> config = {"metrics_url": collector.metrics_url, ...}
        >>> # ... trigger the worker ...
        >>> await collector.wait_for_payloads(1)
        >>> assert "cpu_time" in collector.get_metric_names()
        >>> await collector.dispose()
    """

    component = EnumHarnessComponent.TELEMETRY_COLLECTOR

    def __init__(
        self,
        host: str = DEFAULT_BIND_HOST,
        port: int = 0,
        client_max_size: int = DEFAULT_CLIENT_MAX_SIZE,
    ) -> None:
        super().__init__(host=host, port=port, client_max_size=client_max_size)
        self._payloads: list[ModelCapturedPayload] = []
        self._metric_names: frozenset[str] = frozenset()
        self._scope_names: frozenset[str] = frozenset()
        self._rejected_count: int = 0

    @property
    def metrics_url(self) -> str:
        """Return the full ingestion URL to inject as the worker's metrics endpoint."""
        return f"{self.base_url}{METRICS_PATH}"

    @property
    def payload_count(self) -> int:
        return len(self._payloads)

    @property
    def rejected_count(self) -> int:
        """Number of deliveries answered with 400 since the last start."""
        return self._rejected_count

    def get_payloads(self) -> tuple[ModelCapturedPayload, ...]:
        """Return copies of every accepted payload, in insertion order."""
        return tuple(
            payload.model_copy(update={"document": _fresh_document(payload)})
            for payload in self._payloads
        )

    def get_metrics(self) -> tuple[dict[str, object], ...]:
        """Return fresh copies of the decoded export documents, in insertion order."""
        return tuple(_fresh_document(payload) for payload in self._payloads)

    def get_metric_names(self) -> frozenset[str]:
        return self._metric_names

    def get_scope_names(self) -> frozenset[str]:
        return self._scope_names

    def reindex(self) -> frozenset[str]:
        """Rebuild the metric and scope indexes from the full payload history.

        Built from the name sets captured at ingestion, so calling it again
        on an unchanged history yields the same sets. Returns the
        metric-name index.
        """
        metric_names: set[str] = set()
        scope_names: set[str] = set()
        for payload in self._payloads:
            metric_names |= payload.metric_names
            scope_names |= payload.scope_names
        self._metric_names = frozenset(metric_names)
        self._scope_names = frozenset(scope_names)
        return self._metric_names

    async def wait_for_payloads(
        self,
        min_count: int = 1,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
    ) -> tuple[ModelCapturedPayload, ...]:
        """Poll until at least ``min_count`` payloads were accepted.

        Raises:
            PollTimeoutError: If fewer payloads arrived before the deadline.
        """
        await wait_until(
            lambda: len(self._payloads) >= min_count,
            poll_interval_seconds=poll_interval_seconds,
            timeout_seconds=timeout_seconds,
            description=f"collector received at least {min_count} payload(s)",
        )
        return self.get_payloads()

    async def wait_for_metric_name(
        self,
        name: str,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
    ) -> frozenset[str]:
        """Poll until ``name`` appears in the metric-name index.

        Raises:
            PollTimeoutError: If the metric was not observed before the deadline.
        """
        await wait_until(
            lambda: name in self._metric_names,
            poll_interval_seconds=poll_interval_seconds,
            timeout_seconds=timeout_seconds,
            description=f"collector indexed metric {name!r}",
        )
        return self._metric_names

    def _register_routes(self, app: web.Application) -> None:
        app.router.add_post(METRICS_PATH, self._capture)

    def _reset_state(self) -> None:
        self._payloads = []
        self._rejected_count = 0
        self.reindex()

    async def _handle_body(self, request: web.Request, body: bytes) -> web.Response:
        try:
            document = decode_export_document(body)
        except ProtocolDecodeError as e:
            self._rejected_count += 1
            logger.warning(
                "Rejected telemetry export: %s",
                e.message,
                extra={
                    "component": self.component.value,
                    "content_length": len(body),
                    "rejected_count": self._rejected_count,
                },
            )
            return web.Response(
                status=400,
                text=f"Bad Request: {e.message}",
                content_type="text/plain",
            )

        # No await between append and reindex.
        self._payloads.append(
            ModelCapturedPayload(
                sequence=len(self._payloads),
                received_at=datetime.now(UTC),
                raw=body,
                document=document,
                metric_names=frozenset(extract_metric_names(document)),
                scope_names=frozenset(extract_scope_names(document)),
            )
        )
        self.reindex()

        logger.debug(
            "Indexed telemetry export #%d",
            len(self._payloads),
            extra={
                "component": self.component.value,
                "metric_names": sorted(self._metric_names),
            },
        )
        return web.Response(status=200, text="OK", content_type="text/plain")


__all__: list[str] = [
    "METRICS_PATH",
    "ServiceTelemetryCollector",
    "decode_export_document",
    "extract_metric_names",
    "extract_scope_names",
]
