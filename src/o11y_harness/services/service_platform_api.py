# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Mock Cloudflare GraphQL Analytics API.

The worker queries the platform's analytics API for each dataset it
exports. This double runs no queries: it looks for a known dataset marker
in the raw request body and answers with the matching canned fixture.

Endpoint:
    - POST /{any path}: 200 application/json, the fixture bytes verbatim

Routing Precedence:
    Routes are checked in table order and the first marker found in the
    body wins. With ``DEFAULT_FIXTURE_ROUTES`` the order is:

        1. d1              d1AnalyticsAdaptiveGroups
        2. durable_objects durableObjectsInvocationsAdaptiveGroups
        3. queue_backlog   queueBacklogAdaptiveGroups

    A body matching none of them gets ``DEFAULT_ROUTE`` (worker
    invocations analytics).

Startup:
    Every fixture is read before the listener binds. A missing or
    unreadable file raises StartupFixtureError and the double never serves.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from aiohttp import web

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, StartupFixtureError
from o11y_harness.services.models.model_fixture_route import (
    ModelFixtureRoute,
    ModelLoadedFixture,
)
from o11y_harness.services.service_request_capture import (
    DEFAULT_BIND_HOST,
    ServiceRequestCapture,
)

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE_DIR: Path = Path(__file__).resolve().parent.parent / "fixtures"

DEFAULT_FIXTURE_ROUTES: tuple[ModelFixtureRoute, ...] = (
    ModelFixtureRoute(
        name="d1",
        marker="d1AnalyticsAdaptiveGroups",
        fixture_file="d1_analytics.json",
    ),
    ModelFixtureRoute(
        name="durable_objects",
        marker="durableObjectsInvocationsAdaptiveGroups",
        fixture_file="durable_objects_analytics.json",
    ),
    ModelFixtureRoute(
        name="queue_backlog",
        marker="queueBacklogAdaptiveGroups",
        fixture_file="queue_backlog_analytics.json",
    ),
)

DEFAULT_ROUTE = ModelFixtureRoute(
    name="workers",
    marker="workersInvocationsAdaptive",
    fixture_file="worker_analytics.json",
)


def resolve_route(
    body_text: str,
    routes: Sequence[ModelFixtureRoute],
    default: ModelFixtureRoute,
) -> ModelFixtureRoute:
    """Return the first route whose marker occurs in ``body_text``, else ``default``."""
    for route in routes:
        if route.marker in body_text:
            return route
    return default


class ServicePlatformApi(ServiceRequestCapture):
    """Content-routed canned-response double for the platform analytics API.

    Attributes:
        routes: Ordered routing table (priority order)
        default_route: Route used when no marker matches
        fixture_dir: Directory fixture files are loaded from

    Example:
        >>> platform_api = ServicePlatformApi()
        >>> await platform_api.start()
        >>> config = {"cloudflare_api_url": platform_api.url, ...}
        >>> await platform_api.dispose()
    """

    component = EnumHarnessComponent.PLATFORM_API

    def __init__(
        self,
        routes: Sequence[ModelFixtureRoute] = DEFAULT_FIXTURE_ROUTES,
        default_route: ModelFixtureRoute = DEFAULT_ROUTE,
        fixture_dir: Path | str | None = None,
        host: str = DEFAULT_BIND_HOST,
        port: int = 0,
    ) -> None:
        super().__init__(host=host, port=port)
        self._routes: tuple[ModelFixtureRoute, ...] = tuple(routes)
        self._default_route: ModelFixtureRoute = default_route
        self._fixture_dir: Path = (
            Path(fixture_dir) if fixture_dir is not None else DEFAULT_FIXTURE_DIR
        )
        self._fixtures: dict[str, ModelLoadedFixture] = {}
        self._served_counts: Counter[str] = Counter()

    @property
    def routes(self) -> tuple[ModelFixtureRoute, ...]:
        return self._routes

    @property
    def default_route(self) -> ModelFixtureRoute:
        return self._default_route

    @property
    def fixture_dir(self) -> Path:
        return self._fixture_dir

    @property
    def served_counts(self) -> dict[str, int]:
        """Return how many responses each route has served since the last start."""
        return dict(self._served_counts)

    def resolve(self, body_text: str) -> ModelFixtureRoute:
        """Resolve a request body against this double's routing table."""
        return resolve_route(body_text, self._routes, self._default_route)

    def fixture_content(self, route_name: str) -> bytes:
        """Return the loaded fixture bytes for ``route_name``.

        Raises:
            KeyError: If fixtures are not loaded or the route is unknown.
        """
        return self._fixtures[route_name].content

    def load_fixtures(self) -> dict[str, ModelLoadedFixture]:
        """Read every fixture in the routing table from ``fixture_dir``.

        Raises:
            StartupFixtureError: If any fixture file is missing or unreadable.
        """
        loaded: dict[str, ModelLoadedFixture] = {}
        for route in (*self._routes, self._default_route):
            path = self._fixture_dir / route.fixture_file
            try:
                content = path.read_bytes()
            except OSError as e:
                context = ModelHarnessErrorContext(
                    component=self.component,
                    operation="load_fixtures",
                    target_name=str(path),
                )
                raise StartupFixtureError(
                    f"Cannot load fixture for route {route.name!r} from {path}: {e}",
                    context=context,
                    route=route.name,
                ) from e
            loaded[route.name] = ModelLoadedFixture(route=route, content=content)
            logger.debug(
                "Loaded platform fixture %s",
                path.name,
                extra={"route": route.name, "size": len(content)},
            )
        return loaded

    async def _prepare(self) -> None:
        self._fixtures = self.load_fixtures()

    def _register_routes(self, app: web.Application) -> None:
        app.router.add_post("/{tail:.*}", self._capture)

    def _reset_state(self) -> None:
        self._served_counts = Counter()

    def _discard_state(self) -> None:
        self._reset_state()
        self._fixtures = {}

    async def _handle_body(self, request: web.Request, body: bytes) -> web.Response:
        route = self.resolve(body.decode("utf-8", errors="replace"))
        self._served_counts[route.name] += 1
        logger.debug(
            "Platform API answered with %s fixture",
            route.name,
            extra={"component": self.component.value, "path": request.path},
        )
        return web.Response(
            status=200,
            body=self._fixtures[route.name].content,
            content_type="application/json",
        )


__all__: list[str] = [
    "DEFAULT_FIXTURE_DIR",
    "DEFAULT_FIXTURE_ROUTES",
    "DEFAULT_ROUTE",
    "ServicePlatformApi",
    "resolve_route",
]
