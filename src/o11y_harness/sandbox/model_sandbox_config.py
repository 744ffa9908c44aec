# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Sandbox Configuration Model.

This module provides the Pydantic configuration model the sandbox driver is
started with: the upstream URLs and credential injected into the worker,
plus the settings used to launch and reach the local worker runtime.

Security Note:
    The credential uses SecretStr so it never appears in reprs, logs or
    error messages. Test doubles accept any value.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from o11y_harness.enums import EnumHarnessComponent
from o11y_harness.errors import ModelHarnessErrorContext, SandboxConfigurationError

BINDING_CLOUDFLARE_API_URL = "CLOUDFLARE_API_URL"
BINDING_CLOUDFLARE_API_KEY = "CLOUDFLARE_API_KEY"
BINDING_METRICS_URL = "METRICS_URL"

DEFAULT_SCRIPT_PATH = "./build/worker/shim.mjs"
DEFAULT_TRIGGER_PATH = "/cdn-cgi/mf/scheduled"

# Miniflare 2 CLI; bindings are appended as ``--binding NAME=value`` pairs.
DEFAULT_SANDBOX_COMMAND: tuple[str, ...] = (
    "npx",
    "miniflare@2",
    "{script_path}",
    "--modules",
    "--modules-rule",
    "CompiledWasm=**/*.wasm",
    "--compat-date",
    "2022-04-05",
    "--host",
    "{host}",
    "--port",
    "{port}",
)


def _validate_http_url(value: str, field_name: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL, got {value!r}")
    return value


class ModelSandboxConfig(BaseModel):
    """Configuration for one sandboxed worker instance.

    Required fields have no defaults: an incomplete configuration fails
    validation instead of starting the worker against a silent default.

    Attributes:
        cloudflare_api_url: Platform analytics API URL injected as CLOUDFLARE_API_URL
        metrics_url: OTLP/HTTP metrics URL injected as METRICS_URL
        cloudflare_api_key: Credential injected as CLOUDFLARE_API_KEY
        script_path: Built worker bundle passed to the runtime
        command: argv template; ``{script_path}``, ``{host}``, ``{port}`` are substituted
        host: Host the worker runtime listens on
        port: Port for the worker runtime (None picks a free ephemeral port)
        startup_timeout_seconds: Deadline for the runtime to accept connections
        trigger_path: Scheduled-execution path on the runtime
        trigger_timeout_seconds: Deadline for one trigger round trip
        stop_timeout_seconds: Grace period between terminate and kill
        working_dir: Working directory for the runtime process
        extra_bindings: Additional bindings injected alongside the required ones

    Example:
        >>> config = ModelSandboxConfig(
        ...     cloudflare_api_url=platform_api.url,
        ...     metrics_url=collector.metrics_url,
        ...     cloudflare_api_key=SecretStr("fake-key"),
        ... )
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    cloudflare_api_url: str = Field(description="Platform analytics API URL")
    metrics_url: str = Field(description="OTLP/HTTP metrics ingestion URL")
    cloudflare_api_key: SecretStr = Field(description="Platform API credential")
    script_path: str = Field(
        default=DEFAULT_SCRIPT_PATH,
        min_length=1,
        description="Built worker bundle",
    )
    command: tuple[str, ...] = Field(
        default=DEFAULT_SANDBOX_COMMAND,
        min_length=1,
        description="Worker runtime argv template",
    )
    host: str = Field(default="127.0.0.1", min_length=1)
    port: int | None = Field(default=None, ge=1, le=65535)
    startup_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    trigger_path: str = Field(default=DEFAULT_TRIGGER_PATH)
    trigger_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    stop_timeout_seconds: float = Field(default=5.0, gt=0.0, le=60.0)
    working_dir: str | None = Field(default=None)
    extra_bindings: dict[str, str] = Field(default_factory=dict)

    @field_validator("cloudflare_api_url")
    @classmethod
    def validate_cloudflare_api_url(cls, v: str) -> str:
        return _validate_http_url(v, "cloudflare_api_url")

    @field_validator("metrics_url")
    @classmethod
    def validate_metrics_url(cls, v: str) -> str:
        return _validate_http_url(v, "metrics_url")

    @field_validator("cloudflare_api_key")
    @classmethod
    def validate_cloudflare_api_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("cloudflare_api_key must not be empty")
        return v

    @field_validator("trigger_path")
    @classmethod
    def validate_trigger_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"trigger_path must start with '/', got {v!r}")
        return v

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> ModelSandboxConfig:
        """Validate a plain mapping, converting failures to SandboxConfigurationError.

        Raises:
            SandboxConfigurationError: With ``missing_fields`` and
                ``invalid_fields`` listing the offending field names.
        """
        try:
            return cls.model_validate(dict(values))
        except ValidationError as e:
            missing: list[str] = []
            invalid: list[str] = []
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"]) or "<root>"
                if error["type"] == "missing":
                    missing.append(field)
                else:
                    invalid.append(field)
            parts = []
            if missing:
                parts.append(f"missing required field(s): {', '.join(missing)}")
            if invalid:
                parts.append(f"invalid field(s): {', '.join(invalid)}")
            raise SandboxConfigurationError(
                "Invalid sandbox configuration: " + "; ".join(parts),
                context=ModelHarnessErrorContext(
                    component=EnumHarnessComponent.CONFIGURATION,
                    operation="validate_sandbox_config",
                ),
                missing_fields=missing,
                invalid_fields=invalid,
            ) from e

    def bindings(self) -> dict[str, str]:
        """Return the bindings injected into the worker, secrets revealed."""
        bindings = dict(self.extra_bindings)
        bindings[BINDING_CLOUDFLARE_API_URL] = self.cloudflare_api_url
        bindings[BINDING_CLOUDFLARE_API_KEY] = self.cloudflare_api_key.get_secret_value()
        bindings[BINDING_METRICS_URL] = self.metrics_url
        return bindings

    def render_command(self, port: int) -> list[str]:
        """Return the runtime argv with placeholders substituted and bindings appended."""
        substitutions = {
            "{script_path}": self.script_path,
            "{host}": self.host,
            "{port}": str(port),
        }
        argv = [substitutions.get(arg, arg) for arg in self.command]
        for name, value in self.bindings().items():
            argv.extend(["--binding", f"{name}={value}"])
        return argv


__all__: list[str] = [
    "BINDING_CLOUDFLARE_API_KEY",
    "BINDING_CLOUDFLARE_API_URL",
    "BINDING_METRICS_URL",
    "DEFAULT_SANDBOX_COMMAND",
    "DEFAULT_SCRIPT_PATH",
    "DEFAULT_TRIGGER_PATH",
    "ModelSandboxConfig",
]
