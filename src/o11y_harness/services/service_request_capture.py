# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Request-Capturing HTTP Responder.

This module provides the minimal aiohttp listener both test doubles are
built on. It binds an OS-assigned port, buffers every request body in full
before handing it to the subclass, and tears down cleanly so no listener
survives a scenario.

Subclasses implement:
    - _register_routes(app): add routes that delegate to ``self._capture``
    - _handle_body(request, body): produce the response from the full body
    - _reset_state() / _discard_state(): optional per-double state hooks

Example:
    >>> async def main():
    ...     collector = ServiceTelemetryCollector()
    ...     await collector.start()
    ...     print(collector.metrics_url)
    ...     await collector.dispose()

Note:
    aiohttp reads a request body to completion in ``request.read()``, however
    many chunks arrive on the wire, and keeps it in a per-request buffer.
    Two connections never share a buffer.
"""

from __future__ import annotations

import logging
from types import TracebackType

from aiohttp import web

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import (
    DoubleNotRunningError,
    DoubleStartupError,
    ModelHarnessErrorContext,
)
from o11y_harness.utils.util_correlation import generate_correlation_id

logger = logging.getLogger(__name__)

DEFAULT_BIND_HOST = "127.0.0.1"
DEFAULT_CLIENT_MAX_SIZE: int = 64 * 1024 * 1024


class ServiceRequestCapture:
    """Base aiohttp listener that fully buffers request bodies.

    Attributes:
        component: Harness component identity used in logs and errors
        host: Host to bind to
        requested_port: Port requested at construction (0 = OS-assigned)

    Lifecycle:
        ``start()`` binds and resets double-specific state. ``stop()`` closes
        the listener but leaves captured state readable. ``dispose()`` stops
        and discards captured state. ``start()`` and ``stop()`` are
        idempotent.
    """

    component: EnumHarnessComponent = EnumHarnessComponent.TELEMETRY_COLLECTOR

    def __init__(
        self,
        host: str = DEFAULT_BIND_HOST,
        port: int = 0,
        client_max_size: int = DEFAULT_CLIENT_MAX_SIZE,
    ) -> None:
        self._host: str = host
        self._requested_port: int = port
        self._client_max_size: int = client_max_size

        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._bound_port: int | None = None
        self._is_running: bool = False

    async def __aenter__(self) -> ServiceRequestCapture:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    @property
    def is_running(self) -> bool:
        """Return True if the listener is bound and serving."""
        return self._is_running

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        """Return the OS-assigned port.

        Raises:
            DoubleNotRunningError: If the double has not been started.
        """
        if not self._is_running or self._bound_port is None:
            raise DoubleNotRunningError(
                f"{type(self).__name__} is not running; start() it before reading its port",
                context=self._context("port"),
            )
        return self._bound_port

    @property
    def base_url(self) -> str:
        """Return ``http://{host}:{port}`` without a trailing slash."""
        return f"http://{self._host}:{self.port}"

    @property
    def url(self) -> str:
        """Return the root URL, with trailing slash."""
        return f"{self.base_url}/"

    def _context(self, operation: str) -> ModelHarnessErrorContext:
        target = (
            f"{self._host}:{self._bound_port}"
            if self._bound_port is not None
            else f"{self._host}:{self._requested_port}"
        )
        return ModelHarnessErrorContext(
            component=self.component,
            operation=operation,
            target_name=target,
        )

    def _register_routes(self, app: web.Application) -> None:
        raise NotImplementedError

    async def _handle_body(self, request: web.Request, body: bytes) -> web.Response:
        raise NotImplementedError

    def _reset_state(self) -> None:
        """Clear per-double state before binding. No-op by default."""

    def _discard_state(self) -> None:
        """Drop per-double state on dispose. Defaults to ``_reset_state``."""
        self._reset_state()

    async def _prepare(self) -> None:
        """Hook run before binding; raising here prevents the bind."""

    async def _capture(self, request: web.Request) -> web.Response:
        """Buffer the whole request body, then delegate to ``_handle_body``."""
        body = await request.read()
        logger.debug(
            "%s received %s %s",
            type(self).__name__,
            request.method,
            request.path,
            extra={
                "component": self.component.value,
                "content_length": len(body),
                "content_type": request.content_type,
            },
        )
        return await self._handle_body(request, body)

    async def start(self) -> None:
        """Bind the listener on the configured host and an OS-assigned port.

        Startup Process:
            1. Skip if already running
            2. Run ``_prepare()`` (fixture loading etc.)
            3. Reset double-specific state
            4. Create Application, register routes, set up AppRunner
            5. Start TCPSite and read the bound port from the runner

        Raises:
            DoubleStartupError: If the listener cannot be bound.
            HarnessError: Any error raised by ``_prepare()`` propagates.
        """
        if self._is_running:
            logger.debug("%s already started, skipping", type(self).__name__)
            return

        correlation_id = generate_correlation_id()
        await self._prepare()
        self._reset_state()

        try:
            self._app = web.Application(client_max_size=self._client_max_size)
            self._register_routes(self._app)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, self._host, self._requested_port)
            await self._site.start()

            addresses = self._runner.addresses
            if not addresses:
                raise OSError("listener reported no bound addresses")
            self._bound_port = int(addresses[0][1])
            self._is_running = True

        except OSError as e:
            error_msg = (
                f"Failed to start {type(self).__name__} on "
                f"{self._host}:{self._requested_port}: {e}"
            )
            logger.exception(
                "%s (correlation_id=%s)",
                error_msg,
                correlation_id,
                extra={"error_type": type(e).__name__},
            )
            await self._cleanup(correlation_id)
            context = ModelHarnessErrorContext(
                component=self.component,
                operation="start",
                target_name=f"{self._host}:{self._requested_port}",
                correlation_id=correlation_id,
            )
            raise DoubleStartupError(error_msg, context=context) from e

        logger.info(
            "%s started on %s (correlation_id=%s)",
            type(self).__name__,
            self.base_url,
            correlation_id,
            extra={"component": self.component.value, "port": self._bound_port},
        )

    async def stop(self) -> None:
        """Close the listener; captured state stays readable.

        Idempotent. Cleanup errors are logged, never raised, so that
        scenario teardown always completes.
        """
        if not self._is_running and self._runner is None:
            logger.debug("%s already stopped, skipping", type(self).__name__)
            return

        correlation_id = generate_correlation_id()
        logger.info(
            "Stopping %s (correlation_id=%s)", type(self).__name__, correlation_id
        )
        await self._cleanup(correlation_id)
        logger.info(
            "%s stopped (correlation_id=%s)", type(self).__name__, correlation_id
        )

    async def dispose(self) -> None:
        """Stop the listener and discard all captured state."""
        await self.stop()
        self._discard_state()

    async def _cleanup(self, correlation_id: object) -> None:
        # Reverse creation order: site (socket) first, then runner.
        if self._site is not None:
            try:
                await self._site.stop()
            except Exception as e:
                logger.warning(
                    "Error stopping TCPSite (correlation_id=%s)",
                    correlation_id,
                    extra={"error_type": type(e).__name__, "error": str(e)},
                )
            self._site = None

        if self._runner is not None:
            try:
                await self._runner.cleanup()
            except Exception as e:
                logger.warning(
                    "Error cleaning up AppRunner (correlation_id=%s)",
                    correlation_id,
                    extra={"error_type": type(e).__name__, "error": str(e)},
                )
            self._runner = None

        self._app = None
        self._bound_port = None
        self._is_running = False


__all__: list[str] = [
    "DEFAULT_BIND_HOST",
    "DEFAULT_CLIENT_MAX_SIZE",
    "ServiceRequestCapture",
]
