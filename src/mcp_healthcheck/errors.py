"""Exception hierarchy for mcp-healthcheck."""

from typing import Optional


class HealthcheckError(Exception):
    """Base class for all mcp-healthcheck errors."""


class ConfigReadError(HealthcheckError):
    """Configuration file is missing or unreadable."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read config {path}: {reason}")


class ConfigParseError(HealthcheckError):
    """Configuration is not valid JSON after comment stripping."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse config {path}: {reason}")


class UnknownServiceError(HealthcheckError):
    """A server filter matched no configured service."""

    def __init__(self, server_name: str):
        self.server_name = server_name
        super().__init__(f"Server '{server_name}' not found")


class ProbeFailure(HealthcheckError):
    """A single test case failed in a way its probe did not handle."""

    def __init__(self, test_name: str, message: str):
        self.test_name = test_name
        self.message = message
        super().__init__(f"{test_name}: {message}")


class ReportWriteError(HealthcheckError):
    """The rendered report could not be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write report to {path}: {reason}")


class ToolNotFoundError(HealthcheckError):
    """The requested operation is not exposed by any configured server."""

    def __init__(self, tool_name: str, server_name: Optional[str] = None):
        self.tool_name = tool_name
        self.server_name = server_name
        where = f" on server '{server_name}'" if server_name else ""
        super().__init__(f"Tool '{tool_name}' not found{where}")


class ToolInvocationError(HealthcheckError):
    """The operation exists but the call failed."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class NotificationError(HealthcheckError):
    """Desktop notification could not be delivered."""
