#!/usr/bin/env python3
"""
HTTP/SSE Transport Wrapper for mcp-healthcheck

Exposes the mcp-healthcheck MCP server over HTTP/SSE for SSE-compatible
MCP clients, plus plain HTTP endpoints for the latest report.

Endpoints:
  GET  /sse        - SSE connection for MCP protocol
  POST /messages/  - Message endpoint for MCP protocol
  GET  /health     - Health check endpoint
  GET  /info       - Server info endpoint
  GET  /report     - Latest markdown health report
  POST /mcp-test   - Run the health check (JSON body: {"server": "...", "verbose": false})

Usage:
  python sse_server.py                    # Default port 5590
  python sse_server.py --port 6590        # Custom port
  MCP_SSE_PORT=5590 python sse_server.py  # Via environment
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route, Mount
from starlette.responses import JSONResponse, PlainTextResponse, Response
from mcp.server.sse import SseServerTransport

# Add src directory to path for imports
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Initialize logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("mcp-healthcheck-sse")


class _SseResponse(Response):
    """
    No-op Response for SSE endpoints.

    The SSE transport handles the response directly via ASGI send callback.
    """
    async def __call__(self, scope, receive, send):
        pass


def initialize_mcp_server():
    """Return the configured mcp-healthcheck MCP server instance."""
    from mcp_healthcheck import server as mcp_server_module

    logger.info("Initialized mcp-healthcheck MCP server")
    return mcp_server_module.app


def create_app(mcp_server, run_health_check=None, report_path=None):
    """
    Create Starlette app with MCP SSE endpoints and CORS support.

    Args:
        mcp_server: MCP server instance to expose over SSE
        run_health_check: Coroutine function (server, verbose) -> envelope
            (default: mcp_test_standalone)
        report_path: Markdown report served by /report (default: configured path)
    """
    from mcp_healthcheck.env_config import get_report_path

    if run_health_check is None:
        from mcp_healthcheck.command import mcp_test_standalone
        run_health_check = mcp_test_standalone
    report_path = Path(report_path) if report_path else get_report_path()

    sse = SseServerTransport("/messages/")

    async def handle_sse(request):
        """Handle SSE connection for MCP protocol."""
        logger.info(f"SSE connection from {request.client.host if request.client else 'unknown'}")

        async with sse.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await mcp_server.run(
                streams[0], streams[1], mcp_server.create_initialization_options()
            )

        return _SseResponse()

    async def health(request):
        """Health check endpoint."""
        return JSONResponse({
            "status": "healthy",
            "server": "mcp-healthcheck",
            "transport": "sse"
        })

    async def info(request):
        """Server info endpoint."""
        return JSONResponse({
            "name": "mcp-healthcheck",
            "version": "0.1.0",
            "transport": "sse",
            "protocol": "mcp",
            "endpoints": {
                "sse": "/sse",
                "messages": "/messages/",
                "health": "/health",
                "info": "/info",
                "report": "/report",
                "mcp_test": "/mcp-test"
            }
        })

    async def report(request):
        """Latest markdown report."""
        if not report_path.exists():
            return JSONResponse(
                {"error": "not_found", "message": f"No report at {report_path}"},
                status_code=404
            )
        return PlainTextResponse(report_path.read_text(encoding="utf-8"), media_type="text/markdown")

    async def mcp_test(request):
        """Run the health check and return the response envelope."""
        try:
            body = await request.json() if await request.body() else {}
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return JSONResponse(
                {"error": "invalid_input", "message": "Request body must be a JSON object"},
                status_code=400
            )

        result = await run_health_check(
            server=body.get("server") or "all",
            verbose=bool(body.get("verbose", False))
        )
        if result["ok"]:
            return JSONResponse(result)
        status_code = 404 if result.get("error") == "not_found" else 500
        return JSONResponse(result, status_code=status_code)

    routes = [
        Route("/health", endpoint=health, methods=["GET"]),
        Route("/info", endpoint=info, methods=["GET"]),
        Route("/report", endpoint=report, methods=["GET"]),
        Route("/mcp-test", endpoint=mcp_test, methods=["POST"]),
        Route("/sse", endpoint=handle_sse, methods=["GET"]),
        Mount("/messages/", app=sse.handle_post_message),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    ]

    return Starlette(routes=routes, middleware=middleware)


def main():
    """Run the mcp-healthcheck SSE server."""
    parser = argparse.ArgumentParser(
        description="HTTP/SSE wrapper for mcp-healthcheck"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=int(os.environ.get("MCP_SSE_PORT", "5590")),
        help="HTTP port to listen on (default: 5590)"
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("MCP_SSE_HOST", "127.0.0.1"),
        help="Host to bind to (default: 127.0.0.1)"
    )

    args = parser.parse_args()

    logger.info("Initializing mcp-healthcheck server...")
    mcp_server = initialize_mcp_server()

    app = create_app(mcp_server)

    logger.info(f"Starting mcp-healthcheck SSE server on {args.host}:{args.port}")
    logger.info(f"Health check: http://{args.host}:{args.port}/health")
    logger.info(f"SSE endpoint: http://{args.host}:{args.port}/sse")

    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
