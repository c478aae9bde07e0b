"""
Health Report Rendering

Renders service results as the markdown health report, plus JSON and YAML
exports for automation.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from mcp_healthcheck.errors import ReportWriteError
from mcp_healthcheck.models import Report, ServiceResult, Status

logger = logging.getLogger(__name__)


def summarize(results: Sequence[ServiceResult]) -> Dict[str, int]:
    """Count servers per status."""
    summary = {"total": len(results)}
    for status in (Status.SUCCESS, Status.WARNING, Status.ERROR, Status.SKIPPED):
        summary[status.value] = len([r for r in results if r.status == status])
    return summary


def build_report(results: Sequence[ServiceResult], generated_at: Optional[datetime] = None) -> Report:
    """Assemble a Report, stamping it with the current UTC time by default."""
    return Report(
        results=list(results),
        summary=summarize(results),
        generated_at=generated_at or datetime.now(timezone.utc),
    )


def _format_details(details: Any) -> List[str]:
    if isinstance(details, str):
        body = details
    else:
        body = json.dumps(details, indent=2, ensure_ascii=False, default=str)
    lines = ["  ```"]
    lines.extend(f"  {line}" for line in body.splitlines() or [""])
    lines.append("  ```")
    return lines


def _bullet_text(text: str) -> str:
    """Indent continuation lines so multi-line messages stay inside their sub-bullet."""
    lines = str(text).splitlines() or [""]
    return "\n".join([lines[0]] + [f"    {line}" for line in lines[1:]])


def render_markdown(
    results: Sequence[ServiceResult],
    generated_at: Optional[datetime] = None,
    verbose: bool = False
) -> str:
    """
    Render the markdown health report.

    Args:
        results: Service results in run order
        generated_at: Report timestamp (default: now, UTC)
        verbose: Include result payloads under each test

    Returns:
        str: Markdown document
    """
    report = build_report(results, generated_at)
    summary = report.summary

    md_lines = []
    md_lines.append("# MCP Health Check Report")
    md_lines.append("")
    md_lines.append(f"Generated: {report.generated_at.isoformat()}")
    md_lines.append("")

    md_lines.append("## Summary")
    md_lines.append("")
    md_lines.append(f"- Total MCP Servers: {summary['total']}")
    md_lines.append(f"- {Status.SUCCESS.emoji} Success: {summary['success']}")
    md_lines.append(f"- {Status.WARNING.emoji} Warning: {summary['warning']}")
    md_lines.append(f"- {Status.ERROR.emoji} Error: {summary['error']}")
    md_lines.append(f"- {Status.SKIPPED.emoji} Skipped: {summary['skipped']}")
    md_lines.append("")

    md_lines.append("## Detailed Results")
    md_lines.append("")

    for result in report.results:
        md_lines.append(f"### {result.status.emoji} {result.display_name} ({result.service_name})")
        md_lines.append("")

        if not result.tests:
            md_lines.append("- No tests run")

        for test in result.tests:
            outcome = test.outcome
            md_lines.append(f"- {test.status.emoji} {test.name}")
            if outcome.warning:
                md_lines.append(f"  - Warning: {_bullet_text(outcome.warning)}")
            if outcome.error:
                md_lines.append(f"  - Error: {_bullet_text(outcome.error)}")
            if verbose and outcome.details is not None:
                md_lines.extend(_format_details(outcome.details))

        if result.troubleshooting:
            md_lines.append("")
            md_lines.append("**Troubleshooting:**")
            for tip in result.troubleshooting:
                md_lines.append(f"- {tip}")

        md_lines.append("")

    return "\n".join(md_lines)


def export_to_json(report: Report, indent: int = 2) -> str:
    """Convert a report to a JSON string."""
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False, default=str)


def export_to_yaml(report: Report) -> str:
    """Convert a report to a YAML string."""
    return yaml.safe_dump(
        json.loads(export_to_json(report)),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True
    )


def persist(content: str, output_path: Union[str, Path]) -> Path:
    """
    Write rendered report text, overwriting any existing file.

    Raises:
        ReportWriteError: If the file cannot be written
    """
    path = Path(output_path)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportWriteError(str(path), str(e)) from e

    logger.info(f"Report saved to: {path}")
    return path
