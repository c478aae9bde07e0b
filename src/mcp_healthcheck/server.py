#!/usr/bin/env python3
"""
MCP Health Check Server

Provides tools for:
- Testing and troubleshooting every MCP server configured in opencode.jsonc
- Listing the discovered servers and their test categories
- Querying saved health check history
- Sending desktop notifications for session lifecycle events
"""

import json
import logging
import asyncio
import time
from typing import Any

import sentry_sdk
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp import types

from mcp_healthcheck.command import mcp_test_standalone
from mcp_healthcheck.config_loader import load_services
from mcp_healthcheck.env_config import get_config_path, get_env, get_log_dir
from mcp_healthcheck.errors import ConfigParseError, ConfigReadError, NotificationError
from mcp_healthcheck.notifications import EVENT_NOTIFICATIONS, handle_event
from mcp_healthcheck.registry import get_suite
from mcp_healthcheck.response import ResponseEnvelope, ErrorCodes
from mcp_healthcheck import history

# Initialize logging
LOG_DIR = get_log_dir()
LOG_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOG_DIR / "mcp-healthcheck.log")
    ]
)
logger = logging.getLogger(__name__)

# Initialize Sentry for monitoring this MCP server
SENTRY_DSN = get_env("SENTRY_DSN")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        traces_sample_rate=1.0,
        environment=get_env("SENTRY_ENVIRONMENT", "development"),
        release=get_env("SENTRY_RELEASE", "mcp-healthcheck@0.1.0"),
    )
    logger.info("Sentry monitoring enabled")

# Initialize Supabase history if configured
SUPABASE_URL = get_env("SUPABASE_URL")
SUPABASE_KEY = get_env("SUPABASE_KEY")
if SUPABASE_URL and SUPABASE_KEY:
    try:
        history.initialize_supabase(SUPABASE_URL, SUPABASE_KEY)
    except Exception as e:
        logger.warning(f"Failed to initialize Supabase client: {e}")

# Initialize MCP server
app = Server("mcp-healthcheck")


def format_response(response: dict) -> list[types.TextContent]:
    """Format response as MCP TextContent."""
    return [types.TextContent(type="text", text=json.dumps(response, indent=2, ensure_ascii=False, default=str))]


@app.list_tools()
async def list_tools() -> list[types.Tool]:
    """List all available tools."""
    return [
        types.Tool(
            name="mcp_test",
            description="Test and troubleshoot the MCP servers configured in opencode.jsonc and write a markdown health report",
            inputSchema={
                "type": "object",
                "properties": {
                    "server": {
                        "type": "string",
                        "description": "Name of one configured server to test (default: all)",
                        "default": "all"
                    },
                    "verbose": {
                        "type": "boolean",
                        "description": "Include full result payloads in the report (default: false)",
                        "default": False
                    }
                },
                "required": []
            }
        ),

        types.Tool(
            name="list_mcp_servers",
            description="List enabled MCP servers from opencode.jsonc with their test category",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),

        types.Tool(
            name="get_health_history",
            description="Get recent health check runs saved to Supabase",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "enum": ["success", "warning", "error", "skipped"],
                        "description": "Only return runs with this overall status"
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of runs to return (default: 10)",
                        "default": 10
                    }
                },
                "required": []
            }
        ),

        types.Tool(
            name="send_notification",
            description="Send a desktop notification for a session lifecycle event",
            inputSchema={
                "type": "object",
                "properties": {
                    "event_type": {
                        "type": "string",
                        "enum": sorted(EVENT_NOTIFICATIONS.keys()),
                        "description": "Lifecycle event type"
                    }
                },
                "required": ["event_type"]
            }
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[types.TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "mcp_test":
            return await handle_mcp_test(arguments)
        elif name == "list_mcp_servers":
            return await handle_list_mcp_servers(arguments)
        elif name == "get_health_history":
            return await handle_get_health_history(arguments)
        elif name == "send_notification":
            return await handle_send_notification(arguments)
        else:
            return format_response(
                ResponseEnvelope.error(
                    ErrorCodes.INVALID_ARGUMENT,
                    f"Unknown tool: {name}"
                )
            )
    except Exception as e:
        logger.exception(f"Tool {name} failed")
        sentry_sdk.capture_exception(e)
        return format_response(
            ResponseEnvelope.error(
                ErrorCodes.UNEXPECTED_EXCEPTION,
                f"Tool execution failed: {str(e)}"
            )
        )


async def handle_mcp_test(arguments: dict) -> list[types.TextContent]:
    """Handle mcp_test tool."""
    server = arguments.get("server") or "all"
    verbose = bool(arguments.get("verbose", False))

    start_time = time.time()
    result = await mcp_test_standalone(server=server, verbose=verbose)
    execution_time_ms = int((time.time() - start_time) * 1000)

    logger.info(f"mcp_test({server}) finished in {execution_time_ms}ms: {result['message']}")

    if result["ok"]:
        await history.save_health_run(result["data"], triggered_by="mcp", execution_time_ms=execution_time_ms)

    return format_response(result)


async def handle_list_mcp_servers(arguments: dict) -> list[types.TextContent]:
    """Handle list_mcp_servers tool."""
    config_path = get_config_path()
    try:
        services = load_services(config_path)
    except ConfigReadError as e:
        return format_response(ResponseEnvelope.error(ErrorCodes.IO_ERROR, str(e)))
    except ConfigParseError as e:
        return format_response(ResponseEnvelope.error(ErrorCodes.INVALID_INPUT, str(e)))

    servers = []
    for service in services:
        suite = get_suite(service.category)
        servers.append({
            "name": service.name,
            "category": service.category.value,
            "display_name": suite.display_name if suite else None,
            "tests": [t.name for t in suite.tests] if suite else [],
        })

    return format_response(
        ResponseEnvelope.success(
            f"Found {len(servers)} MCP servers in {config_path}",
            data={"servers": servers}
        )
    )


async def handle_get_health_history(arguments: dict) -> list[types.TextContent]:
    """Handle get_health_history tool."""
    if history.supabase is None:
        return format_response(
            ResponseEnvelope.error(
                ErrorCodes.EXTERNAL_SERVICE_ERROR,
                "Supabase connection not available (set SUPABASE_URL and SUPABASE_KEY)"
            )
        )

    runs = await history.get_latest_runs(
        status=arguments.get("status"),
        limit=int(arguments.get("limit", 10))
    )
    return format_response(
        ResponseEnvelope.success(f"Retrieved {len(runs)} health check runs", data={"runs": runs})
    )


async def handle_send_notification(arguments: dict) -> list[types.TextContent]:
    """Handle send_notification tool."""
    event_type = arguments.get("event_type")
    if event_type not in EVENT_NOTIFICATIONS:
        return format_response(
            ResponseEnvelope.error(
                ErrorCodes.INVALID_ARGUMENT,
                f"Unknown event type: {event_type}"
            )
        )

    try:
        await handle_event({"type": event_type})
    except NotificationError as e:
        logger.warning(f"Notification failed: {e}")
        return format_response(ResponseEnvelope.error(ErrorCodes.NONZERO_EXIT, str(e)))

    return format_response(ResponseEnvelope.success(f"Notification sent for {event_type}"))


async def _run():
    """Run the MCP server (async)."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def main():
    """Entry point for the MCP server."""
    asyncio.run(_run())


if __name__ == "__main__":
    main()
