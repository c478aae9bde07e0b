"""Shared fixtures for mcp-healthcheck tests."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Keep the MCP server's file log out of the user's home directory
os.environ.setdefault("MCP_HEALTHCHECK_LOG_DIR", tempfile.mkdtemp(prefix="mcp-healthcheck-logs-"))

# Root-level scripts (cli.py, sse_server.py) and the src package
repo_root = Path(__file__).parent.parent
for path in (repo_root, repo_root / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from mcp_healthcheck.errors import ToolNotFoundError


class ScriptedInvoker:
    """
    Stub tool invoker returning scripted outcomes.

    Values in `script` are returned as-is, exceptions are raised, and
    callables are called with the arguments. Unscripted tools raise
    ToolNotFoundError.
    """

    def __init__(self, script=None):
        self.script = dict(script or {})
        self.calls = []

    async def __call__(self, tool_name, arguments=None):
        self.calls.append((tool_name, arguments or {}))
        if tool_name not in self.script:
            raise ToolNotFoundError(tool_name)
        value = self.script[tool_name]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(arguments or {})
        return value

    @property
    def called_tools(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def scripted_invoker():
    """Factory for ScriptedInvoker instances."""
    return ScriptedInvoker


@pytest.fixture
def write_config(tmp_path):
    """Write a JSONC config into tmp_path and return its path."""
    def _write(text, name="opencode.jsonc"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sqlite_script():
    """Script under which every SQLite test for `my-sqlite` succeeds."""
    return {
        "my-sqlite_list_tables": ["users"],
        "my-sqlite_create_table": "ok",
        "my-sqlite_write_query": "ok",
        "my-sqlite_read_query": [{"id": 1, "name": "test"}],
    }
