#!/usr/bin/env python3
"""
Tests for the JSONC configuration loader.

Tests:
- Line comment stripping with URL preservation
- Block comment and trailing comma removal
- Service extraction and enabled flag handling
- Read and parse error reporting
"""

import json

import pytest

from mcp_healthcheck.classifier import Category
from mcp_healthcheck.config_loader import (
    ServiceEntry,
    extract_services,
    load_services,
    parse_config,
    strip_jsonc,
)
from mcp_healthcheck.errors import ConfigParseError, ConfigReadError


class TestStripJsonc:
    """Tests for comment and trailing comma removal."""

    def test_trailing_line_comment_and_comma(self):
        """Test a trailing comment and trailing comma produce valid JSON."""
        text = '{"a": 1, // trailing comment\n "b": 2,}'

        assert json.loads(strip_jsonc(text)) == {"a": 1, "b": 2}

    def test_full_line_comment(self):
        """Test a line consisting only of a comment is emptied."""
        text = '{\n  // the answer\n  "answer": 42\n}'

        assert json.loads(strip_jsonc(text)) == {"answer": 42}

    def test_https_url_survives(self):
        """Test URL values keep their scheme slashes."""
        text = '{\n  "url": "https://example.com/sse"\n}'

        assert json.loads(strip_jsonc(text)) == {"url": "https://example.com/sse"}

    def test_http_url_survives(self):
        """Test http URLs are preserved too."""
        text = '{"url": "http://localhost:8000/mcp"}'

        assert json.loads(strip_jsonc(text)) == {"url": "http://localhost:8000/mcp"}

    def test_block_comment_removed_across_lines(self):
        """Test multi-line block comments are removed."""
        text = '{\n  /* disabled for now\n  "old": true,\n  */\n  "new": true\n}'

        assert json.loads(strip_jsonc(text)) == {"new": True}

    def test_trailing_comma_in_array(self):
        """Test trailing commas before a closing bracket are removed."""
        text = '{"args": ["-y", "pkg",\n  ]}'

        assert json.loads(strip_jsonc(text)) == {"args": ["-y", "pkg"]}

    def test_plain_json_unchanged(self):
        """Test strict JSON passes through untouched."""
        text = '{"a": [1, 2], "b": {"c": null}}'

        assert strip_jsonc(text) == text


class TestParseConfig:
    """Tests for parse_config()."""

    def test_invalid_json_raises(self):
        """Test malformed documents raise ConfigParseError."""
        with pytest.raises(ConfigParseError) as exc_info:
            parse_config('{"mcp": {', source="bad.jsonc")

        assert exc_info.value.path == "bad.jsonc"

    def test_non_object_top_level_raises(self):
        """Test a top-level array is rejected."""
        with pytest.raises(ConfigParseError):
            parse_config("[1, 2, 3]")


class TestExtractServices:
    """Tests for extract_services()."""

    def test_disabled_servers_excluded(self):
        """Test servers with enabled: false never appear."""
        config = {
            "mcp": {
                "filesystem": {"enabled": True},
                "chroma": {"enabled": False},
                "sqlite": {},
            }
        }

        names = [s.name for s in extract_services(config)]

        assert names == ["filesystem", "sqlite"]

    def test_enabled_defaults_true(self):
        """Test servers without an enabled flag are included and enabled."""
        services = extract_services({"mcp": {"deepwiki": {"type": "local"}}})

        assert services == [
            ServiceEntry(
                name="deepwiki",
                raw_config={"type": "local"},
                category=Category.DEEPWIKI,
                enabled=True,
            )
        ]

    def test_non_false_enabled_values_included(self):
        """Test only the literal False disables a server."""
        services = extract_services({"mcp": {"a": {"enabled": 0}, "b": {"enabled": None}}})

        assert [s.name for s in services] == ["a", "b"]

    def test_missing_mcp_section(self):
        """Test configs without an mcp map have no services."""
        assert extract_services({"theme": "dark"}) == []
        assert extract_services({"mcp": ["not", "a", "map"]}) == []

    def test_non_object_entry_treated_as_empty(self):
        """Test a scalar server entry gets an empty config."""
        services = extract_services({"mcp": {"odd": True}})

        assert services[0].raw_config == {}
        assert services[0].category == Category.GENERIC


class TestLoadServices:
    """Tests for load_services()."""

    def test_load_from_file(self, write_config):
        """Test a realistic opencode.jsonc is discovered."""
        path = write_config("""{
  "$schema": "https://opencode.ai/config.json",
  // MCP servers
  "mcp": {
    "filesystem": {
      "type": "local",
      "command": ["npx", "-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
    },
    /* chroma is flaky */
    "chroma": {"type": "local", "command": ["uvx", "chroma-mcp"], "enabled": false},
    "my-sqlite": {"enabled": true},
  },
}
""")

        services = load_services(path)

        assert [(s.name, s.category) for s in services] == [
            ("filesystem", Category.FILESYSTEM),
            ("my-sqlite", Category.SQLITE),
        ]

    def test_missing_file_raises_read_error(self, tmp_path):
        """Test a missing file raises ConfigReadError."""
        with pytest.raises(ConfigReadError):
            load_services(tmp_path / "missing.jsonc")

    def test_malformed_file_raises_parse_error(self, write_config):
        """Test a malformed file raises ConfigParseError."""
        path = write_config('{"mcp": {"a": }')

        with pytest.raises(ConfigParseError):
            load_services(path)
