"""
Configuration Loader

Reads the opencode.jsonc configuration, strips JSONC comments and trailing
commas, and extracts the configured MCP servers.

Usage:
    from mcp_healthcheck.config_loader import load_services

    services = load_services("opencode.jsonc")
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from mcp_healthcheck.classifier import Category, classify
from mcp_healthcheck.errors import ConfigParseError, ConfigReadError

logger = logging.getLogger(__name__)

BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


@dataclass(frozen=True)
class ServiceEntry:
    """A configured MCP server."""
    name: str
    raw_config: Dict[str, Any] = field(default_factory=dict)
    category: Category = Category.GENERIC
    enabled: bool = True


def _strip_line_comment(line: str) -> str:
    comment_index = line.find("//")
    if comment_index == -1:
        return line

    before_comment = line[:comment_index]
    # Keep scheme-valued strings such as "http://localhost:8000" intact
    if before_comment.strip().endswith(":"):
        return line
    if "http:" in before_comment or "https:" in before_comment:
        return line
    return before_comment


def strip_jsonc(text: str) -> str:
    """
    Convert JSONC text to strict JSON.

    Line comments are removed with a URL-preserving heuristic, then block
    comments, then trailing commas before a closing brace or bracket.

    Args:
        text: Raw JSONC document

    Returns:
        str: Text suitable for json.loads()
    """
    stripped = "\n".join(_strip_line_comment(line) for line in text.split("\n"))
    stripped = BLOCK_COMMENT_RE.sub("", stripped)
    return TRAILING_COMMA_RE.sub(r"\1", stripped)


def parse_config(text: str, source: str = "<string>") -> Dict[str, Any]:
    """
    Parse a JSONC document into a dictionary.

    Raises:
        ConfigParseError: If the stripped text is not valid JSON
    """
    try:
        config = json.loads(strip_jsonc(text))
    except json.JSONDecodeError as e:
        raise ConfigParseError(source, str(e)) from e

    if not isinstance(config, dict):
        raise ConfigParseError(source, "top-level value must be an object")
    return config


def extract_services(config: Dict[str, Any]) -> List[ServiceEntry]:
    """
    Extract enabled services from the `mcp` map of a parsed config.

    A server is included unless its `enabled` field is exactly False.
    """
    mcp_servers = config.get("mcp")
    if not isinstance(mcp_servers, dict):
        return []

    services = []
    for name, server_config in mcp_servers.items():
        if not isinstance(server_config, dict):
            server_config = {}

        if server_config.get("enabled") is False:
            logger.debug(f"Skipping disabled server: {name}")
            continue

        services.append(ServiceEntry(
            name=name,
            raw_config=server_config,
            category=classify(name),
            enabled=True,
        ))

    return services


def load_services(path: Union[str, Path]) -> List[ServiceEntry]:
    """
    Discover configured MCP servers from a JSONC config file.

    Args:
        path: Path to opencode.jsonc

    Returns:
        list: ServiceEntry per enabled server, in config order

    Raises:
        ConfigReadError: If the file cannot be read
        ConfigParseError: If the file is not valid JSONC
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(str(path), str(e)) from e

    services = extract_services(parse_config(text, source=str(path)))
    logger.info(f"Discovered {len(services)} MCP servers in {path}")
    return services
