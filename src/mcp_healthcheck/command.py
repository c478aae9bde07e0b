"""
mcp_test command

The single operation exposed to hosts: discover configured servers, test
them through the host's tool invoker, and write the markdown report.

Usage:
    from mcp_healthcheck.command import mcp_test

    result = await mcp_test(invoke, server="chroma", verbose=True)
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mcp_healthcheck.config_loader import load_services
from mcp_healthcheck.env_config import get_config_path, get_report_path
from mcp_healthcheck.errors import ConfigParseError, ConfigReadError, ReportWriteError, UnknownServiceError
from mcp_healthcheck.invocation import McpClientInvoker, ToolInvoker
from mcp_healthcheck.reporter import persist, render_markdown, summarize
from mcp_healthcheck.response import ErrorCodes, ResponseEnvelope
from mcp_healthcheck.runner import ALL_SERVERS, run_services

logger = logging.getLogger(__name__)


async def mcp_test(
    invoke: ToolInvoker,
    server: str = ALL_SERVERS,
    verbose: bool = False,
    config_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None,
    generated_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Test and troubleshoot the configured MCP servers.

    Args:
        invoke: Tool invocation capability supplied by the host
        server: Name of one configured server, or "all"
        verbose: Include full result payloads in the report
        config_path: JSONC config path (default from MCP_HEALTHCHECK_CONFIG)
        output_path: Report path (default from MCP_HEALTHCHECK_REPORT)
        generated_at: Report timestamp override

    Returns:
        dict: Response envelope; data holds summary, results and report_path
    """
    config_path = Path(config_path) if config_path else get_config_path()
    output_path = Path(output_path) if output_path else get_report_path()

    try:
        services = load_services(config_path)
    except ConfigReadError as e:
        logger.error(str(e))
        return ResponseEnvelope.error(ErrorCodes.IO_ERROR, str(e))
    except ConfigParseError as e:
        logger.error(str(e))
        return ResponseEnvelope.error(ErrorCodes.INVALID_INPUT, str(e))

    if not services:
        logger.warning(f"No MCP servers found in {config_path}")
        return ResponseEnvelope.error(ErrorCodes.NOT_FOUND, "No MCP servers found in configuration")

    logger.info(f"Found {len(services)} MCP servers: {', '.join(s.name for s in services)}")

    try:
        results = await run_services(services, invoke, verbose=verbose, server_filter=server)
    except UnknownServiceError as e:
        logger.warning(str(e))
        return ResponseEnvelope.error(
            ErrorCodes.NOT_FOUND,
            str(e),
            data={"available_servers": [s.name for s in services]}
        )

    try:
        persist(render_markdown(results, generated_at=generated_at, verbose=verbose), output_path)
    except ReportWriteError as e:
        logger.error(str(e))
        return ResponseEnvelope.error(ErrorCodes.IO_ERROR, str(e))

    summary = summarize(results)
    return ResponseEnvelope.success(
        f"Tested {summary['total']} MCP servers: {summary['success']} ok, "
        f"{summary['warning']} warning, {summary['error']} error, {summary['skipped']} skipped",
        data={
            "summary": summary,
            "results": [r.to_dict() for r in results],
            "report_path": str(output_path),
        }
    )


async def mcp_test_standalone(
    server: str = ALL_SERVERS,
    verbose: bool = False,
    config_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Run mcp_test against live MCP sessions to the configured servers.

    Used when no host supplies a tool invoker (CLI and MCP server modes).
    """
    config_path = Path(config_path) if config_path else get_config_path()
    try:
        services = load_services(config_path)
    except (ConfigReadError, ConfigParseError):
        # mcp_test reports the same error in its envelope
        services = []

    async with McpClientInvoker(services) as invoke:
        return await mcp_test(
            invoke,
            server=server,
            verbose=verbose,
            config_path=config_path,
            output_path=output_path
        )
