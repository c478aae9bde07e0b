"""
Tool Invocation

The health check never defines the tools it exercises. It calls them by
name through a ToolInvoker: an async callable taking a tool name and an
argument map. Hosts inject their own invoker; McpClientInvoker is the
standalone implementation that connects to the configured servers with the
MCP Python SDK.

Usage:
    from mcp_healthcheck.invocation import McpClientInvoker

    async with McpClientInvoker(services) as invoke:
        tables = await invoke("sqlite_list_tables", {})
"""

import asyncio
import json
import logging
import os
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Tuple

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client

from mcp_healthcheck.config_loader import ServiceEntry
from mcp_healthcheck.env_config import get_connect_timeout
from mcp_healthcheck.errors import ToolInvocationError, ToolNotFoundError

logger = logging.getLogger(__name__)

ToolInvoker = Callable[[str, Dict[str, Any]], Awaitable[Any]]


def get_transport_type(config: Dict[str, Any]) -> str:
    """
    Determine transport type from a server configuration.

    Supports opencode entries ({"type": "local", "command": [...]},
    {"type": "remote", "url": ...}) and Claude-style entries
    ({"command": "npx", "args": [...]}).

    Returns:
        str: 'stdio', 'sse', 'http', or 'unknown'
    """
    transport = config.get("transport")
    url = config.get("url") or (transport.get("url") if isinstance(transport, dict) else None)
    if config.get("type") == "remote" or url:
        if not url:
            return "unknown"
        return "sse" if url.rstrip("/").endswith("/sse") else "http"
    if config.get("command"):
        return "stdio"
    return "unknown"


def build_stdio_parameters(config: Dict[str, Any]) -> StdioServerParameters:
    """Build stdio launch parameters from a local server configuration."""
    command = config.get("command")
    args = list(config.get("args", []))
    if isinstance(command, list):
        if not command:
            raise ValueError("empty command")
        command, args = command[0], list(command[1:]) + args

    env = {**os.environ, **config.get("environment", {}), **config.get("env", {})}
    return StdioServerParameters(command=command, args=args, env=env)


def decode_tool_result(tool_name: str, result: Any) -> Any:
    """
    Convert a CallToolResult into a plain Python value.

    Structured content wins; otherwise text content is parsed as JSON when
    possible and returned as raw text when not.

    Raises:
        ToolInvocationError: If the server flagged the result as an error
    """
    content = getattr(result, "content", None) or []
    texts = [c.text for c in content if getattr(c, "type", None) == "text"]
    text = "\n".join(texts)

    if getattr(result, "isError", False):
        raise ToolInvocationError(tool_name, text or f"Tool {tool_name} returned an error")

    structured = getattr(result, "structuredContent", None)
    if structured is not None:
        if isinstance(structured, dict) and list(structured.keys()) == ["result"]:
            return structured["result"]
        return structured

    if not texts:
        return content or None

    try:
        return json.loads(text)
    except ValueError:
        return text


class McpClientInvoker:
    """
    ToolInvoker backed by live MCP client sessions.

    Tool names follow the host convention `<server name>_<tool>`. Sessions
    are opened lazily on first use and closed when the context exits.
    """

    def __init__(self, services: Iterable[ServiceEntry], connect_timeout: Optional[float] = None):
        self.services: Dict[str, ServiceEntry] = {s.name: s for s in services}
        self.connect_timeout = connect_timeout if connect_timeout is not None else get_connect_timeout()
        self._stack: Optional[AsyncExitStack] = None
        self._sessions: Dict[str, ClientSession] = {}
        self._tools: Dict[str, Set[str]] = {}
        self._failed: Dict[str, str] = {}

    async def __aenter__(self) -> "McpClientInvoker":
        self._stack = AsyncExitStack()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._stack is not None:
            await self._stack.aclose()
        self._stack = None
        self._sessions.clear()
        self._tools.clear()
        self._failed.clear()

    def resolve(self, tool_name: str) -> Tuple[str, str]:
        """
        Split a host tool name into (server name, server-side tool name).

        The longest configured server name that prefixes the tool name wins.

        Raises:
            ToolNotFoundError: If no configured server matches
        """
        matches = [name for name in self.services if tool_name.startswith(f"{name}_")]
        if not matches:
            raise ToolNotFoundError(tool_name)
        server_name = max(matches, key=len)
        return server_name, tool_name[len(server_name) + 1:]

    async def _connect(self, stack: AsyncExitStack, config: Dict[str, Any]) -> ClientSession:
        transport = get_transport_type(config)
        if transport == "stdio":
            read, write = await stack.enter_async_context(stdio_client(build_stdio_parameters(config)))
        elif transport == "sse":
            read, write = await stack.enter_async_context(
                sse_client(config["url"], headers=config.get("headers"))
            )
        elif transport == "http":
            read, write, _ = await stack.enter_async_context(
                streamablehttp_client(config["url"], headers=config.get("headers"))
            )
        else:
            raise ValueError("no command or url in configuration")

        session = await stack.enter_async_context(ClientSession(read, write))
        await asyncio.wait_for(session.initialize(), timeout=self.connect_timeout)
        return session

    async def _get_session(self, server_name: str) -> ClientSession:
        if server_name in self._sessions:
            return self._sessions[server_name]
        if server_name in self._failed:
            raise ToolInvocationError(server_name, self._failed[server_name])
        if self._stack is None:
            raise RuntimeError("McpClientInvoker must be used as an async context manager")

        config = self.services[server_name].raw_config
        server_stack = AsyncExitStack()
        try:
            session = await self._connect(server_stack, config)
            listed = await asyncio.wait_for(session.list_tools(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            await server_stack.aclose()
            message = f"Connection timeout after {self.connect_timeout}s to {server_name}"
            self._failed[server_name] = message
            logger.warning(message)
            raise ToolInvocationError(server_name, message)
        except Exception as e:
            await server_stack.aclose()
            message = f"Connection error to {server_name}: {e}"
            self._failed[server_name] = message
            logger.warning(message)
            raise ToolInvocationError(server_name, message) from e

        await self._stack.enter_async_context(server_stack)
        self._sessions[server_name] = session
        self._tools[server_name] = {tool.name for tool in listed.tools}
        logger.info(f"Connected to {server_name} ({len(self._tools[server_name])} tools)")
        return session

    async def list_tools(self, server_name: str) -> List[str]:
        """List tool names exposed by a configured server."""
        await self._get_session(server_name)
        return sorted(self._tools[server_name])

    async def __call__(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        server_name, remote_name = self.resolve(tool_name)
        session = await self._get_session(server_name)

        if remote_name not in self._tools[server_name]:
            raise ToolNotFoundError(tool_name, server_name)

        logger.debug(f"Calling {server_name}.{remote_name}")
        try:
            result = await session.call_tool(remote_name, arguments or {})
        except Exception as e:
            raise ToolInvocationError(tool_name, str(e)) from e
        return decode_tool_result(tool_name, result)
