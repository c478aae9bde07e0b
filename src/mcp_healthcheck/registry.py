"""
MCP Server Test Definitions

Static test suites keyed by Category. Every probe calls tools through the
injected ToolInvoker using the host naming convention `<server>_<tool>`, and
converts any invocation failure into a TestOutcome instead of raising.
"""

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

from mcp_healthcheck.classifier import Category
from mcp_healthcheck.env_config import get_search_root
from mcp_healthcheck.errors import ToolNotFoundError
from mcp_healthcheck.invocation import ToolInvoker
from mcp_healthcheck.models import TestOutcome

logger = logging.getLogger(__name__)

Probe = Callable[[ToolInvoker, str], Awaitable[TestOutcome]]

GENERIC_OPERATIONS = ("list", "get", "query", "status")


@dataclass(frozen=True)
class TestCase:
    """A named probe against one server."""
    name: str
    probe: Probe

    __test__ = False


@dataclass(frozen=True)
class TestSuite:
    """Ordered tests and troubleshooting tips for one category."""
    display_name: str
    tests: Tuple[TestCase, ...]
    troubleshoot: Mapping[str, str] = field(default_factory=dict)

    __test__ = False


def tool_name(server_name: str, operation: str) -> str:
    """Host-side tool name for an operation on a server."""
    return f"{server_name}_{operation}"


def evaluate_result(result: Any, empty_warning: Optional[str] = None) -> TestOutcome:
    """
    Classify a raw tool result.

    None or a falsy scalar is a failure, an empty collection is a success
    with a warning, anything else is a success.
    """
    if isinstance(result, (list, tuple, dict)):
        if len(result) == 0:
            return TestOutcome(success=True, warning=empty_warning or "Empty result returned", details=result)
        return TestOutcome(success=True, details=result)
    if not result:
        return TestOutcome(success=False, details=result)
    return TestOutcome(success=True, details=result)


def _has_field(result: Any, key: str) -> bool:
    return isinstance(result, dict) and bool(result.get(key))


def _failed(e: Exception) -> TestOutcome:
    return TestOutcome(success=False, error=str(e) or e.__class__.__name__)


# Filesystem

async def _list_allowed_directories(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "list_allowed_directories"), {})
        return evaluate_result(result, "No allowed directories configured")
    except Exception as e:
        return _failed(e)


async def _search_files(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "search_files"), {
            "path": get_search_root(),
            "pattern": "opencode.jsonc",
        })
        return evaluate_result(result, "No results returned")
    except Exception as e:
        return _failed(e)


# Search server

async def _basic_search(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "one_search"), {"query": "test", "limit": 5})
        return evaluate_result(result, "No results returned")
    except Exception as e:
        return _failed(e)


async def _scrape_webpage(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "one_scrape"), {
            "url": "https://example.com",
            "formats": ["markdown"],
        })
        return TestOutcome(success=_has_field(result, "markdown"), details=result)
    except Exception as e:
        return _failed(e)


async def _cleanup(invoke: ToolInvoker, name: str, arguments: Dict[str, Any]):
    """Call a cleanup tool, logging instead of raising on failure."""
    try:
        await invoke(name, arguments)
    except Exception as e:
        logger.warning(f"Cleanup via {name} failed: {e}")


# SQLite

async def _list_tables(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "list_tables"), {})
        return evaluate_result(result, "No tables found")
    except Exception as e:
        return _failed(e)


async def _create_and_query_table(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    created = False
    try:
        await invoke(tool_name(server_name, "create_table"), {
            "query": "CREATE TABLE IF NOT EXISTS mcp_test (id INTEGER PRIMARY KEY, name TEXT)"
        })
        created = True
        await invoke(tool_name(server_name, "write_query"), {
            "query": "INSERT OR REPLACE INTO mcp_test (id, name) VALUES (1, 'test')"
        })
        result = await invoke(tool_name(server_name, "read_query"), {
            "query": "SELECT * FROM mcp_test WHERE id = 1"
        })
        return TestOutcome(success=bool(result), details=result)
    except Exception as e:
        return _failed(e)
    finally:
        if created:
            await _cleanup(invoke, tool_name(server_name, "write_query"), {"query": "DROP TABLE IF EXISTS mcp_test"})


# Chroma

async def _list_collections(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "chroma_list_collections"), {})
        return evaluate_result(result, "No collections found")
    except Exception as e:
        return _failed(e)


async def _chroma_crud(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    collection = f"mcp_test_{int(time.time() * 1000)}"
    created = False
    try:
        await invoke(tool_name(server_name, "chroma_create_collection"), {"collection_name": collection})
        created = True
        await invoke(tool_name(server_name, "chroma_add_documents"), {
            "collection_name": collection,
            "documents": ["Test document 1", "Test document 2"],
            "ids": ["test1", "test2"],
            "metadatas": [{"type": "test"}, {"type": "test"}],
        })
        query_result = await invoke(tool_name(server_name, "chroma_query_documents"), {
            "collection_name": collection,
            "query_texts": ["Test"],
            "n_results": 2,
        })
        if _has_field(query_result, "documents"):
            return TestOutcome(success=True, details="All CRUD operations successful")
        return TestOutcome(success=False, details=query_result)
    except Exception as e:
        return _failed(e)
    finally:
        if created:
            await _cleanup(invoke, tool_name(server_name, "chroma_delete_collection"), {"collection_name": collection})


# DeepWiki

async def _fetch_documentation(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    try:
        result = await invoke(tool_name(server_name, "deepwiki_fetch"), {
            "url": "vercel/next.js",
            "maxDepth": 0,
            "mode": "aggregate",
        })
        if isinstance(result, str) and not result.strip():
            return TestOutcome(success=True, warning="No content fetched", details=result)
        return evaluate_result(result, "No content fetched")
    except Exception as e:
        return _failed(e)


# Generic

async def _generic_list(invoke: ToolInvoker, server_name: str) -> TestOutcome:
    for operation in GENERIC_OPERATIONS:
        candidate = tool_name(server_name, operation)
        try:
            result = await invoke(candidate, {})
        except ToolNotFoundError:
            continue
        except Exception as e:
            return _failed(e)
        logger.debug(f"Generic probe used {candidate}")
        return TestOutcome(success=bool(result), details=result)

    return TestOutcome(
        success=False,
        warning="Manual testing required",
        details="No recognizable operations found",
    )


_SUITES: Dict[Category, TestSuite] = {
    Category.FILESYSTEM: TestSuite(
        display_name="Filesystem MCP",
        tests=(
            TestCase("List allowed directories", _list_allowed_directories),
            TestCase("Search files", _search_files),
        ),
        troubleshoot={
            "connection_error": "Check if mcp-server-filesystem is installed: npm install -g @modelcontextprotocol/server-filesystem",
            "permission_denied": "Verify the path in opencode.jsonc is readable and writable",
            "no_results": "Check if the specified path exists and contains files",
        },
    ),
    Category.SEARCH_SERVER: TestSuite(
        display_name="Search-Server MCP",
        tests=(
            TestCase("Perform basic search", _basic_search),
            TestCase("Scrape webpage", _scrape_webpage),
        ),
        troubleshoot={
            "connection_error": "Check if one-search-mcp is running: npm install -g one-search-mcp",
            "no_results": "Search index may be empty or query too specific",
            "timeout": "Increase timeout or check network connectivity",
        },
    ),
    Category.SQLITE: TestSuite(
        display_name="SQLite MCP",
        tests=(
            TestCase("List tables", _list_tables),
            TestCase("Create and query test table", _create_and_query_table),
        ),
        troubleshoot={
            "connection_error": "Check if mcp-server-sqlite is installed: npm install -g @modelcontextprotocol/server-sqlite",
            "database_locked": "Another process may be using the database - close other connections",
            "permission_denied": "Verify db-path in opencode.jsonc is writable",
            "no_tables": "Database is empty - this is normal for a fresh installation",
        },
    ),
    Category.CHROMA: TestSuite(
        display_name="Chroma MCP",
        tests=(
            TestCase("Check Chroma server connection", _list_collections),
            TestCase("Full CRUD operations", _chroma_crud),
        ),
        troubleshoot={
            "connection_error": "Chroma server not running - start with: systemctl --user start chroma",
            "port_in_use": "Port 8000 is occupied - check with: lsof -i :8000",
            "server_not_installed": "Install chroma: pip install chromadb && pip install mcp-server-chroma",
            "connection_closed": "Chroma server crashed - check logs: journalctl --user -u chroma",
            "auto_start": "Enable auto-start: systemctl --user enable chroma",
        },
    ),
    Category.DEEPWIKI: TestSuite(
        display_name="DeepWiki MCP",
        tests=(
            TestCase("Fetch documentation", _fetch_documentation),
        ),
        troubleshoot={
            "connection_error": "Check if mcp-deepwiki is installed: npx -y mcp-deepwiki@latest",
            "no_content": "deepwiki.com may be down or blocking requests - try again later",
            "rate_limited": "Too many requests - wait a few minutes before retrying",
            "invalid_url": 'Use format: owner/repo (e.g., "vercel/next.js")',
        },
    ),
    Category.GENERIC: TestSuite(
        display_name="Generic MCP Server",
        tests=(
            TestCase("Attempt generic list operation", _generic_list),
        ),
        troubleshoot={
            "connection_error": "Check if the MCP server is installed and command path is correct",
            "unknown_operations": "Consult the MCP server documentation for available operations",
        },
    ),
}

# No suite for Category.DOCKER: its servers are reported as skipped
TEST_SUITES: Mapping[Category, TestSuite] = MappingProxyType(_SUITES)


def get_suite(category: Category) -> Optional[TestSuite]:
    """
    Return the test suite for a category, or None if none is registered.

    Docker servers have no suite and are reported as skipped rather than
    run through the generic suite.
    """
    return TEST_SUITES.get(category)
