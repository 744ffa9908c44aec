# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the o11y-doubles CLI."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from click.testing import CliRunner

from o11y_harness.cli.cli_doubles import _serve, cli


class TestServeCommand:
    def test_help(self) -> None:
        result = CliRunner().invoke(cli, ["serve", "--help"])

        assert result.exit_code == 0
        assert "--fixture-dir" in result.output

    def test_missing_fixtures_exit_1(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["serve", "--fixture-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "ERROR:" in result.output


async def test_serve_prints_urls_and_stops(capsys: pytest.CaptureFixture[str]) -> None:
    stop = asyncio.Event()
    stop.set()

    await _serve("127.0.0.1", None, stop_event=stop)

    out = capsys.readouterr().out
    assert "CLOUDFLARE_API_URL=http://127.0.0.1:" in out
    assert "/v1/metrics" in out
