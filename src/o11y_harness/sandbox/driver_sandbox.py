# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Sandbox Driver for the externally-built worker.

The worker under test is built elsewhere and runs inside a local worker
runtime (Miniflare by default). This driver owns that runtime's process:
it launches one instance with the upstream URLs and credential injected,
fires exactly one scheduled execution per ``trigger()``, and tears the
process down.

Injection:
    Each binding is passed both as a ``--binding NAME=value`` argument and
    as an environment variable of the child process:
        - CLOUDFLARE_API_URL: platform analytics API (the platform double)
        - METRICS_URL: OTLP/HTTP metrics endpoint (the collector double)
        - CLOUDFLARE_API_KEY: credential (any value is accepted by the doubles)

Trigger Semantics:
    ``trigger()`` returns once the scheduled handler's HTTP round trip
    completes. Telemetry the worker exports may land on the collector later,
    so assertions poll the collector instead of reading it immediately.
    A failed trigger is never retried.

Example:
    >>> driver = SandboxDriver()
    >>> await driver.start({
    ...     "cloudflare_api_url": platform_api.url,
    ...     "metrics_url": collector.metrics_url,
    ...     "cloudflare_api_key": "fake-key",
    ... })
    >>> await driver.trigger()
    >>> await driver.dispose()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import socket
from collections import deque
from collections.abc import Mapping

import aiohttp

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import (
    ModelHarnessErrorContext,
    SandboxLifecycleError,
    SandboxStartupError,
    SandboxTriggerError,
)
from o11y_harness.sandbox.model_sandbox_config import ModelSandboxConfig
from o11y_harness.utils.util_correlation import generate_correlation_id

logger = logging.getLogger(__name__)

READINESS_PROBE_INTERVAL_SECONDS: float = 0.1
OUTPUT_BUFFER_LINES: int = 500


def find_free_port(host: str = "127.0.0.1") -> int:
    """Ask the OS for an unused TCP port on ``host``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return int(sock.getsockname()[1])


class SandboxDriver:
    """Lifecycle owner for one sandboxed worker runtime process."""

    def __init__(self) -> None:
        self._config: ModelSandboxConfig | None = None
        self._process: asyncio.subprocess.Process | None = None
        self._port: int | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._output: deque[str] = deque(maxlen=OUTPUT_BUFFER_LINES)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def config(self) -> ModelSandboxConfig | None:
        return self._config

    @property
    def output_lines(self) -> tuple[str, ...]:
        """Most recent lines written by the runtime (stdout and stderr merged)."""
        return tuple(self._output)

    @property
    def base_url(self) -> str:
        """Return ``http://{host}:{port}`` of the running runtime.

        Raises:
            SandboxLifecycleError: If the sandbox is not running.
        """
        if self._config is None or self._port is None or not self.is_running:
            raise SandboxLifecycleError(
                "Sandbox is not running",
                context=self._context("base_url"),
            )
        return f"http://{self._config.host}:{self._port}"

    def _context(self, operation: str, correlation_id: object = None) -> ModelHarnessErrorContext:
        target = None
        if self._config is not None and self._port is not None:
            target = f"{self._config.host}:{self._port}"
        return ModelHarnessErrorContext(
            component=EnumHarnessComponent.SANDBOX,
            operation=operation,
            target_name=target,
            correlation_id=correlation_id,  # type: ignore[arg-type]
        )

    async def start(self, config: ModelSandboxConfig | Mapping[str, object]) -> None:
        """Launch the worker runtime with ``config`` injected.

        Startup Process:
            1. Validate configuration (before any process or socket exists)
            2. Pick an ephemeral port when none is configured
            3. Spawn the runtime in its own process group
            4. Probe the port until it accepts TCP connections

        Raises:
            SandboxConfigurationError: If the configuration is incomplete or invalid.
            SandboxLifecycleError: If a sandbox is already running.
            SandboxStartupError: If the runtime cannot be spawned, exits early,
                or does not accept connections within ``startup_timeout_seconds``.
        """
        if not isinstance(config, ModelSandboxConfig):
            config = ModelSandboxConfig.from_mapping(config)

        if self.is_running:
            raise SandboxLifecycleError(
                "Sandbox already running; dispose() it before starting again",
                context=self._context("start"),
            )
        if self._process is not None:
            # Previous runtime exited on its own; reap it and its output reader.
            await self.dispose()

        correlation_id = generate_correlation_id()
        self._config = config
        self._port = config.port if config.port is not None else find_free_port(config.host)
        self._output.clear()

        argv = config.render_command(self._port)
        env = {**os.environ, **config.bindings()}

        logger.info(
            "Starting sandbox %s on %s:%d (correlation_id=%s)",
            argv[0],
            config.host,
            self._port,
            correlation_id,
            extra={
                "script_path": config.script_path,
                "bindings": sorted(config.bindings()),
            },
        )

        try:
            self._process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                env=env,
                cwd=config.working_dir,
                start_new_session=True,
            )
        except OSError as e:
            self._config = None
            self._port = None
            raise SandboxStartupError(
                f"Failed to spawn sandbox runtime {argv[0]!r}: {e}",
                context=self._context("spawn", correlation_id),
            ) from e

        self._reader_task = asyncio.create_task(self._drain_output(self._process))

        try:
            await self._wait_until_listening(config, correlation_id)
        except SandboxStartupError:
            await self.dispose()
            raise

        logger.info(
            "Sandbox ready at http://%s:%d (correlation_id=%s)",
            config.host,
            self._port,
            correlation_id,
            extra={"pid": self._process.pid},
        )

    async def _wait_until_listening(
        self, config: ModelSandboxConfig, correlation_id: object
    ) -> None:
        assert self._process is not None and self._port is not None
        loop = asyncio.get_running_loop()
        deadline = loop.time() + config.startup_timeout_seconds

        while True:
            if self._process.returncode is not None:
                tail = " | ".join(list(self._output)[-5:])
                raise SandboxStartupError(
                    f"Sandbox runtime exited with code {self._process.returncode} "
                    f"before accepting connections: {tail}",
                    context=self._context("wait_ready", correlation_id),
                    returncode=self._process.returncode,
                )
            try:
                _, writer = await asyncio.wait_for(
                    asyncio.open_connection(config.host, self._port),
                    timeout=READINESS_PROBE_INTERVAL_SECONDS * 5,
                )
            except (OSError, asyncio.TimeoutError):
                pass
            else:
                writer.close()
                with contextlib.suppress(OSError):
                    await writer.wait_closed()
                return

            if loop.time() >= deadline:
                raise SandboxStartupError(
                    f"Sandbox did not accept connections on {config.host}:{self._port} "
                    f"within {config.startup_timeout_seconds}s",
                    context=self._context("wait_ready", correlation_id),
                    timeout_seconds=config.startup_timeout_seconds,
                )
            await asyncio.sleep(READINESS_PROBE_INTERVAL_SECONDS)

    async def _drain_output(self, process: asyncio.subprocess.Process) -> None:
        if process.stdout is None:
            return
        async for raw_line in process.stdout:
            line = raw_line.decode("utf-8", errors="replace").rstrip()
            self._output.append(line)
            logger.debug("sandbox: %s", line, extra={"pid": process.pid})

    async def trigger(self) -> str:
        """Invoke exactly one scheduled execution and wait for its round trip.

        Returns:
            The response body returned by the runtime's scheduled entry path.

        Raises:
            SandboxLifecycleError: If the sandbox is not running.
            SandboxTriggerError: On connection failure, timeout or non-2xx status.
        """
        url = f"{self.base_url}{self._config.trigger_path}"  # type: ignore[union-attr]
        timeout = aiohttp.ClientTimeout(
            total=self._config.trigger_timeout_seconds  # type: ignore[union-attr]
        )
        correlation_id = generate_correlation_id()
        logger.info("Triggering scheduled execution (correlation_id=%s)", correlation_id)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    body = await response.text()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SandboxTriggerError(
                f"Scheduled trigger {url} failed: {type(e).__name__}: {e}",
                context=self._context("trigger", correlation_id),
            ) from e

        if not 200 <= status < 300:
            raise SandboxTriggerError(
                f"Scheduled trigger {url} returned HTTP {status}: {body[:200]}",
                context=self._context("trigger", correlation_id),
                status=status,
            )

        logger.info(
            "Scheduled execution completed (correlation_id=%s)",
            correlation_id,
            extra={"status": status},
        )
        return body

    async def dispose(self) -> None:
        """Terminate the runtime process. No-op when nothing is running."""
        process = self._process
        if process is None:
            return

        stop_timeout = self._config.stop_timeout_seconds if self._config else 5.0
        if process.returncode is None:
            self._signal(process, signal.SIGTERM)
            try:
                await asyncio.wait_for(process.wait(), timeout=stop_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Sandbox did not exit within %.1fs, killing it",
                    stop_timeout,
                    extra={"pid": process.pid},
                )
                self._signal(process, signal.SIGKILL)
                await process.wait()

        if self._reader_task is not None:
            self._reader_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader_task
            self._reader_task = None

        logger.info(
            "Sandbox disposed",
            extra={"pid": process.pid, "returncode": process.returncode},
        )
        self._process = None
        self._port = None

    @staticmethod
    def _signal(process: asyncio.subprocess.Process, sig: signal.Signals) -> None:
        # The runtime may fork (npx -> node); signal the whole process group.
        try:
            if hasattr(os, "killpg"):
                os.killpg(process.pid, sig)
            elif sig == signal.SIGTERM:
                process.terminate()
            else:
                process.kill()
        except ProcessLookupError:
            logger.debug("Sandbox process %d already exited", process.pid)


__all__: list[str] = ["SandboxDriver", "find_free_port"]
