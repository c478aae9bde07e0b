"""
Health Check Runner

Executes the registered test suite of every selected server, strictly in
order, and aggregates per-server status and troubleshooting tips.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from mcp_healthcheck.config_loader import ServiceEntry
from mcp_healthcheck.errors import ProbeFailure, UnknownServiceError
from mcp_healthcheck.invocation import ToolInvoker
from mcp_healthcheck.models import ServiceResult, Status, TestOutcome, TestResult
from mcp_healthcheck.registry import TestSuite, get_suite

logger = logging.getLogger(__name__)

ALL_SERVERS = "all"
DEFAULT_CAUSE = "connection_error"

# Ordered: "connection closed" must be tested before "connection"
CAUSE_KEYWORDS: List[Tuple[Tuple[str, ...], str]] = [
    (("connection closed",), "connection_closed"),
    (("connection",), "connection_error"),
    (("permission", "eacces"), "permission_denied"),
    (("timeout", "timed out"), "timeout"),
    (("locked",), "database_locked"),
    (("rate limit", "too many requests"), "rate_limited"),
    (("address already in use", "eaddrinuse"), "port_in_use"),
    (("not installed", "command not found", "enoent", "no such file"), "server_not_installed"),
    (("no recognizable", "manual testing"), "unknown_operations"),
    (("no tables",), "no_tables"),
    (("no results",), "no_results"),
    (("no content",), "no_content"),
]


def match_cause(message: Optional[str]) -> str:
    """Map an error or warning message to a troubleshooting cause key."""
    lowered = (message or "").lower()
    for keywords, cause in CAUSE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return cause
    return DEFAULT_CAUSE


def troubleshooting_tip(suite: TestSuite, message: Optional[str]) -> Optional[str]:
    """
    Pick the suite's tip for a failure message.

    Falls back to the suite's connection_error tip when the matched cause
    has no tip in this suite.
    """
    cause = match_cause(message)
    return suite.troubleshoot.get(cause) or suite.troubleshoot.get(DEFAULT_CAUSE)


def select_services(services: Iterable[ServiceEntry], server_filter: str = ALL_SERVERS) -> List[ServiceEntry]:
    """
    Apply the server filter to the enabled services.

    Raises:
        UnknownServiceError: If a named filter matches no enabled service
    """
    enabled = [s for s in services if s.enabled]
    if not server_filter or server_filter == ALL_SERVERS:
        return enabled

    selected = [s for s in enabled if s.name == server_filter]
    if not selected:
        raise UnknownServiceError(server_filter)
    return selected


def skipped_result(service: ServiceEntry) -> ServiceResult:
    """Result for a server whose category has no registered suite."""
    return ServiceResult(
        service_name=service.name,
        display_name=f"{service.category.value.title()} MCP",
        status=Status.SKIPPED,
        troubleshooting=[
            f"No automated tests are defined for '{service.category.value}' servers - test {service.name} manually"
        ],
    )


async def run_service(service: ServiceEntry, invoke: ToolInvoker, verbose: bool = False) -> ServiceResult:
    """
    Run one server's test suite.

    Args:
        service: Server to test
        invoke: Tool invocation capability
        verbose: Keep full result payloads in the recorded outcomes

    Returns:
        ServiceResult: Ordered test results, escalated status and tips
    """
    suite = get_suite(service.category)
    if suite is None:
        logger.info(f"No test suite for {service.name} ({service.category.value}), skipping")
        return skipped_result(service)

    result = ServiceResult(service_name=service.name, display_name=suite.display_name)
    logger.info(f"Testing {suite.display_name} ({service.name})")

    for test_case in suite.tests:
        logger.info(f"  - Running: {test_case.name}...")
        try:
            outcome = await test_case.probe(invoke, service.name)
        except Exception as e:
            failure = ProbeFailure(test_case.name, str(e) or e.__class__.__name__)
            logger.error(f"Probe raised unexpectedly: {failure}", exc_info=True)
            outcome = TestOutcome(success=False, error=failure.message)

        if not verbose:
            outcome = TestOutcome(success=outcome.success, warning=outcome.warning, error=outcome.error)

        test_result = TestResult(name=test_case.name, outcome=outcome)
        result.record(test_result)

        if test_result.status == Status.SUCCESS:
            logger.info(f"    {test_case.name}: Success")
            continue

        if test_result.status == Status.WARNING:
            logger.warning(f"    {service.name} / {test_case.name}: {outcome.warning}")
        else:
            logger.warning(f"    {service.name} / {test_case.name}: Failed - {outcome.error or 'no result'}")

        tip = troubleshooting_tip(suite, outcome.message)
        if tip:
            result.troubleshooting.append(tip)

    return result


async def run_services(
    services: Sequence[ServiceEntry],
    invoke: ToolInvoker,
    verbose: bool = False,
    server_filter: str = ALL_SERVERS
) -> List[ServiceResult]:
    """
    Run the health check for every selected server, one at a time.

    Raises:
        UnknownServiceError: If server_filter names no enabled service
    """
    selected = select_services(services, server_filter)
    results = []
    for service in selected:
        results.append(await run_service(service, invoke, verbose=verbose))
    return results
