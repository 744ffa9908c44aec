# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for ModelSandboxConfig."""

from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from o11y_harness.enums import EnumHarnessErrorCode
from o11y_harness.errors import SandboxConfigurationError
from o11y_harness.sandbox import DEFAULT_SANDBOX_COMMAND, ModelSandboxConfig

VALID = {
    "cloudflare_api_url": "http://127.0.0.1:40001/",
    "metrics_url": "http://127.0.0.1:40002/v1/metrics",
    "cloudflare_api_key": "fake-key",
}


class TestValidation:
    """Tests for required and validated fields."""

    def test_valid_mapping(self) -> None:
        config = ModelSandboxConfig.from_mapping(VALID)

        assert config.cloudflare_api_url == VALID["cloudflare_api_url"]
        assert config.command == DEFAULT_SANDBOX_COMMAND
        assert config.port is None

    @pytest.mark.parametrize("field", sorted(VALID))
    def test_each_required_field_is_reported_missing(self, field: str) -> None:
        values = {k: v for k, v in VALID.items() if k != field}

        with pytest.raises(SandboxConfigurationError) as exc_info:
            ModelSandboxConfig.from_mapping(values)

        error = exc_info.value
        assert error.error_code == EnumHarnessErrorCode.INVALID_CONFIGURATION
        assert error.extra_context["missing_fields"] == [field]
        assert field in error.message

    def test_all_missing_fields_listed(self) -> None:
        with pytest.raises(SandboxConfigurationError) as exc_info:
            ModelSandboxConfig.from_mapping({})

        assert sorted(exc_info.value.extra_context["missing_fields"]) == sorted(VALID)

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("cloudflare_api_url", "not a url"),
            ("metrics_url", "ftp://127.0.0.1/v1/metrics"),
            ("cloudflare_api_key", ""),
            ("port", 0),
            ("port", 70000),
            ("trigger_path", "cdn-cgi/mf/scheduled"),
            ("startup_timeout_seconds", 0),
            ("unknown_field", "x"),
        ],
    )
    def test_invalid_fields_reported(self, field: str, value: object) -> None:
        with pytest.raises(SandboxConfigurationError) as exc_info:
            ModelSandboxConfig.from_mapping({**VALID, field: value})

        assert exc_info.value.extra_context["invalid_fields"] == [field]
        assert exc_info.value.extra_context["missing_fields"] == []

    def test_model_is_frozen(self) -> None:
        config = ModelSandboxConfig.from_mapping(VALID)

        with pytest.raises(ValidationError):
            config.host = "0.0.0.0"  # type: ignore[misc]


class TestSecretHandling:
    """Tests that the credential stays hidden."""

    def test_key_not_in_repr(self) -> None:
        config = ModelSandboxConfig.from_mapping({**VALID, "cloudflare_api_key": "s3cret"})

        assert "s3cret" not in repr(config)
        assert "s3cret" not in str(config)

    def test_key_not_in_error_message(self) -> None:
        with pytest.raises(SandboxConfigurationError) as exc_info:
            ModelSandboxConfig.from_mapping(
                {**VALID, "cloudflare_api_key": "s3cret", "metrics_url": "bad"}
            )

        assert "s3cret" not in str(exc_info.value)

    def test_bindings_reveal_key(self) -> None:
        config = ModelSandboxConfig(
            cloudflare_api_url=VALID["cloudflare_api_url"],
            metrics_url=VALID["metrics_url"],
            cloudflare_api_key=SecretStr("s3cret"),
            extra_bindings={"EXTRA": "1"},
        )

        assert config.bindings() == {
            "EXTRA": "1",
            "CLOUDFLARE_API_URL": VALID["cloudflare_api_url"],
            "CLOUDFLARE_API_KEY": "s3cret",
            "METRICS_URL": VALID["metrics_url"],
        }


class TestRenderCommand:
    """Tests for argv rendering."""

    def test_default_command(self) -> None:
        config = ModelSandboxConfig.from_mapping({**VALID, "script_path": "./w.mjs"})

        argv = config.render_command(8787)

        assert argv[:3] == ["npx", "miniflare@2", "./w.mjs"]
        assert argv[argv.index("--port") + 1] == "8787"
        assert argv[argv.index("--host") + 1] == "127.0.0.1"
        assert "--binding" in argv
        assert f"METRICS_URL={VALID['metrics_url']}" in argv

    def test_custom_command_placeholders(self) -> None:
        config = ModelSandboxConfig.from_mapping(
            {**VALID, "command": ("runtime", "{host}:{port}", "--port", "{port}")}
        )

        argv = config.render_command(9000)

        # Only whole-argument placeholders are substituted.
        assert argv[:4] == ["runtime", "{host}:{port}", "--port", "9000"]

    def test_bindings_appended_after_template(self) -> None:
        config = ModelSandboxConfig.from_mapping({**VALID, "command": ("runtime",)})

        argv = config.render_command(1)

        assert argv[0] == "runtime"
        assert argv[1::2] == ["--binding"] * 3
