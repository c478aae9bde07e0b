#!/usr/bin/env python3
"""
Tests for report rendering and persistence.

Tests:
- Summary counts
- Markdown layout and determinism
- Verbose payload blocks
- JSON and YAML exports
- Report file writes
"""

import json
from datetime import datetime, timezone

import pytest
import yaml

from mcp_healthcheck.errors import ReportWriteError
from mcp_healthcheck.models import ServiceResult, Status, TestOutcome, TestResult
from mcp_healthcheck.reporter import (
    build_report,
    export_to_json,
    export_to_yaml,
    persist,
    render_markdown,
    summarize,
)

GENERATED_AT = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def results():
    """One server per status."""
    ok = ServiceResult(service_name="my-sqlite", display_name="SQLite MCP")
    ok.record(TestResult("List tables", TestOutcome(success=True, details=["users"])))

    warn = ServiceResult(service_name="unknown-thing", display_name="Generic MCP Server")
    warn.record(TestResult(
        "Attempt generic list operation",
        TestOutcome(success=False, warning="Manual testing required"),
    ))
    warn.troubleshooting.append("Consult the MCP server documentation for available operations")

    err = ServiceResult(service_name="chroma", display_name="Chroma MCP")
    err.record(TestResult(
        "Check Chroma server connection",
        TestOutcome(success=False, error="Connection refused"),
    ))
    err.troubleshooting.append("Chroma server not running - start with: systemctl --user start chroma")

    skipped = ServiceResult(
        service_name="docker",
        display_name="Docker MCP",
        status=Status.SKIPPED,
        troubleshooting=["No automated tests are defined for 'docker' servers - test docker manually"],
    )
    return [ok, warn, err, skipped]


class TestSummarize:
    """Tests for summarize()."""

    def test_counts(self, results):
        assert summarize(results) == {
            "total": 4,
            "success": 1,
            "warning": 1,
            "error": 1,
            "skipped": 1,
        }

    def test_empty(self):
        assert summarize([]) == {"total": 0, "success": 0, "warning": 0, "error": 0, "skipped": 0}


class TestRenderMarkdown:
    """Tests for render_markdown()."""

    def test_layout(self, results):
        """Test header, summary, sections and troubleshooting blocks."""
        md = render_markdown(results, generated_at=GENERATED_AT)
        lines = md.split("\n")

        assert lines[0] == "# MCP Health Check Report"
        assert "Generated: 2026-10-19T12:00:00+00:00" in lines
        assert "- Total MCP Servers: 4" in lines
        assert "- ✅ Success: 1" in lines
        assert "- ⚠️ Warning: 1" in lines
        assert "- ❌ Error: 1" in lines
        assert "- ⏭️ Skipped: 1" in lines
        assert "### ✅ SQLite MCP (my-sqlite)" in lines
        assert "### ⚠️ Generic MCP Server (unknown-thing)" in lines
        assert "### ❌ Chroma MCP (chroma)" in lines
        assert "### ⏭️ Docker MCP (docker)" in lines
        assert "  - Warning: Manual testing required" in lines
        assert "  - Error: Connection refused" in lines
        assert md.count("**Troubleshooting:**") == 3

    def test_sections_follow_run_order(self, results):
        md = render_markdown(results, generated_at=GENERATED_AT)

        positions = [md.index(f"({name})") for name in ("my-sqlite", "unknown-thing", "chroma", "docker")]
        assert positions == sorted(positions)

    def test_deterministic_for_fixed_timestamp(self, results):
        assert render_markdown(results, GENERATED_AT) == render_markdown(results, GENERATED_AT)

    def test_details_only_when_verbose(self, results):
        quiet = render_markdown(results, GENERATED_AT)
        loud = render_markdown(results, GENERATED_AT, verbose=True)

        assert '"users"' not in quiet
        assert '"users"' in loud
        assert "  ```" in loud

    def test_multiline_error_stays_in_bullet(self):
        """Test stderr-style multi-line errors are indented under their bullet."""
        result = ServiceResult(service_name="sqlite", display_name="SQLite MCP")
        result.record(TestResult(
            name="List tables",
            outcome=TestOutcome(success=False, error="spawn failed\nTraceback (most recent call last):\n\nOSError: boom"),
        ))

        lines = render_markdown([result], GENERATED_AT).split("\n")

        start = lines.index("  - Error: spawn failed")
        assert lines[start + 1:start + 4] == [
            "    Traceback (most recent call last):",
            "    ",
            "    OSError: boom",
        ]

    def test_skipped_server_has_no_tests_line(self, results):
        md = render_markdown(results[3:], GENERATED_AT)

        assert "- No tests run" in md


class TestExports:
    """Tests for JSON and YAML exports."""

    def test_json_export(self, results):
        data = json.loads(export_to_json(build_report(results, GENERATED_AT)))

        assert data["generated_at"] == "2026-10-19T12:00:00+00:00"
        assert data["summary"]["total"] == 4
        assert data["results"][2]["status"] == "error"
        assert data["results"][2]["tests"][0]["error"] == "Connection refused"

    def test_yaml_export_matches_json(self, results):
        report = build_report(results, GENERATED_AT)

        assert yaml.safe_load(export_to_yaml(report)) == json.loads(export_to_json(report))


class TestPersist:
    """Tests for persist()."""

    def test_overwrites_existing_report(self, tmp_path):
        path = tmp_path / "mcpTest.md"
        path.write_text("old report")

        persist("# new report", path)

        assert path.read_text() == "# new report"

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(ReportWriteError) as exc_info:
            persist("# report", tmp_path / "missing" / "mcpTest.md")

        assert exc_info.value.path.endswith("mcpTest.md")
