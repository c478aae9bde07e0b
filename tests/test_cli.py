#!/usr/bin/env python3
"""
Tests for CLI mode.

Tests:
- Argument parsing
- Exit codes
- Output formats
- Server listing
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml

import cli
from mcp_healthcheck.response import ResponseEnvelope

RESULTS = [
    {
        "server": "chroma",
        "display_name": "Chroma MCP",
        "status": "warning",
        "tests": [
            {"name": "List Collections", "success": True, "warning": "No collections found", "error": None, "details": None},
            {"name": "CRUD Operations", "success": True, "warning": None, "error": None, "details": None},
        ],
        "troubleshooting": ["Create a collection first or check Chroma server initialization"],
    },
]


def envelope(success=0, warning=0, error=0, skipped=0):
    summary = {"total": success + warning + error + skipped, "success": success,
               "warning": warning, "error": error, "skipped": skipped}
    return ResponseEnvelope.success(
        "Tested",
        data={"summary": summary, "results": RESULTS, "report_path": "mcpTest.md"}
    )


def cli_for(argv, result=None):
    instance = cli.HealthcheckCLI(cli.build_parser().parse_args(argv))
    if result is not None:
        instance.result = result
    return instance


class TestParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = cli.build_parser().parse_args([])

        assert args.server == "all"
        assert args.verbose is False
        assert args.config is None
        assert args.output is None
        assert args.format == "text"
        assert args.list is False
        assert args.save_history is False
        assert args.notify is False

    def test_short_flags(self):
        args = cli.build_parser().parse_args(["-s", "chroma", "-v", "-c", "cfg.jsonc", "-o", "out.md"])

        assert args.server == "chroma"
        assert args.verbose is True
        assert args.config == "cfg.jsonc"
        assert args.output == "out.md"

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--format", "xml"])


class TestExitCode:
    """Tests for HealthcheckCLI.get_exit_code()."""

    def test_all_success(self):
        assert cli_for([], envelope(success=2)).get_exit_code() == 0

    def test_skipped_only_is_success(self):
        assert cli_for([], envelope(success=1, skipped=1)).get_exit_code() == 0

    def test_warning(self):
        assert cli_for([], envelope(success=1, warning=1)).get_exit_code() == 1

    def test_error(self):
        assert cli_for([], envelope(warning=1, error=1)).get_exit_code() == 2

    def test_failed_run(self):
        failed = ResponseEnvelope.error("not_found", "Server 'x' not found")
        assert cli_for([], failed).get_exit_code() == 1


class TestRun:
    """Tests for HealthcheckCLI.run()."""

    @pytest.mark.asyncio
    async def test_passes_arguments(self, capsys):
        run_mock = AsyncMock(return_value=envelope(warning=1))

        with patch("mcp_healthcheck.command.mcp_test_standalone", run_mock):
            exit_code = await cli_for(["--server", "chroma", "--format", "summary"]).run()

        assert exit_code == 1
        run_mock.assert_awaited_once_with(server="chroma", verbose=False, config_path=None, output_path=None)
        out = capsys.readouterr().out
        assert "Total MCP Servers: 1" in out
        assert "Warning: 1" in out

    @pytest.mark.asyncio
    async def test_json_output(self, capsys):
        with patch("mcp_healthcheck.command.mcp_test_standalone", AsyncMock(return_value=envelope(warning=1))):
            await cli_for(["--format", "json"]).run()

        output = json.loads(capsys.readouterr().out)
        assert output["summary"]["warning"] == 1
        assert output["results"][0]["server"] == "chroma"
        assert "timestamp" in output

    @pytest.mark.asyncio
    async def test_yaml_output(self, capsys):
        with patch("mcp_healthcheck.command.mcp_test_standalone", AsyncMock(return_value=envelope(success=1))):
            await cli_for(["--format", "yaml"]).run()

        output = yaml.safe_load(capsys.readouterr().out)
        assert output["report_path"] == "mcpTest.md"

    @pytest.mark.asyncio
    async def test_text_output(self, capsys):
        with patch("mcp_healthcheck.command.mcp_test_standalone", AsyncMock(return_value=envelope(warning=1))):
            await cli_for([]).run()

        out = capsys.readouterr().out
        assert "Chroma MCP (chroma)" in out
        assert "List Collections: No collections found" in out
        assert "Create a collection first" in out
        assert "Report saved to: mcpTest.md" in out

    @pytest.mark.asyncio
    async def test_error_output_lists_available(self, capsys):
        failed = ResponseEnvelope.error(
            "not_found", "Server 'postgres' not found", data={"available_servers": ["chroma", "sqlite"]}
        )

        with patch("mcp_healthcheck.command.mcp_test_standalone", AsyncMock(return_value=failed)):
            exit_code = await cli_for(["--server", "postgres"]).run()

        out = capsys.readouterr().out
        assert exit_code == 1
        assert "Server 'postgres' not found" in out
        assert "Available servers: chroma, sqlite" in out

    @pytest.mark.asyncio
    async def test_notify_on_error(self):
        with patch("mcp_healthcheck.command.mcp_test_standalone", AsyncMock(return_value=envelope(error=1))), \
                patch("mcp_healthcheck.notifications.handle_event", AsyncMock(return_value=True)) as handler:
            await cli_for(["--notify", "--format", "summary"]).run()

        handler.assert_awaited_once_with({"type": "session.error"})


class TestListServers:
    """Tests for --list."""

    @pytest.mark.asyncio
    async def test_lists_servers(self, write_config, capsys):
        config = write_config('{"mcp": {"sqlite": {}, "deepwiki": {}}}')

        exit_code = await cli.main_async(["--list", "--config", str(config)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Found 2 MCP servers:" in out
        assert "  - sqlite (sqlite)" in out
        assert "  - deepwiki (deepwiki)" in out

    @pytest.mark.asyncio
    async def test_missing_config(self, tmp_path, capsys):
        exit_code = await cli.main_async(["--list", "--config", str(tmp_path / "missing.jsonc")])

        assert exit_code == 1
        assert "❌" in capsys.readouterr().out
