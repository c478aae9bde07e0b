"""
Health Check History

Saves health check run summaries to Supabase so results can be compared
across runs.

Usage:
    from mcp_healthcheck.history import initialize_supabase, save_health_run

    initialize_supabase(url, key)
    result = await mcp_test(invoke)
    await save_health_run(result["data"], triggered_by='cli')
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

logger = logging.getLogger(__name__)

HISTORY_TABLE = "mcp_health_history"

# Global Supabase client (initialized by cli.py or server.py)
supabase: Optional[Client] = None


def initialize_supabase(url: str, key: str):
    """Initialize Supabase client for history tracking."""
    global supabase
    supabase = create_client(url, key)
    logger.info(f"Initialized Supabase client for history tracking: {url}")


def overall_status(summary: Dict[str, int]) -> str:
    """Worst server status in a run summary."""
    if summary.get("error", 0) > 0:
        return "error"
    if summary.get("warning", 0) > 0:
        return "warning"
    if summary.get("success", 0) == 0 and summary.get("skipped", 0) > 0:
        return "skipped"
    return "success"


async def save_health_run(
    run_data: Dict[str, Any],
    triggered_by: str = "unknown",
    execution_time_ms: Optional[int] = None
) -> Optional[str]:
    """
    Save a health check run to Supabase history.

    Args:
        run_data: The `data` of a successful mcp_test envelope (summary + results)
        triggered_by: How the run was triggered ('cli', 'mcp', 'http')
        execution_time_ms: How long the run took in milliseconds

    Returns:
        str: ID of the created record, or None if save failed
    """
    if not supabase:
        logger.warning("Supabase not initialized, cannot save health check history")
        return None

    summary = run_data.get("summary", {})
    record = {
        "created_at": datetime.now(timezone.utc).isoformat(),
        "triggered_by": triggered_by,
        "status": overall_status(summary),
        "servers_total": summary.get("total", 0),
        "servers_success": summary.get("success", 0),
        "servers_warning": summary.get("warning", 0),
        "servers_error": summary.get("error", 0),
        "servers_skipped": summary.get("skipped", 0),
        "execution_time_ms": execution_time_ms,
        "results": run_data.get("results", []),
    }

    try:
        response = supabase.table(HISTORY_TABLE).insert(record).execute()

        if response.data and len(response.data) > 0:
            record_id = response.data[0].get("id")
            logger.info(f"Saved health check history: {record_id} (status: {record['status']})")
            return record_id

        logger.error("Failed to save health check history: no data returned")
        return None

    except Exception as e:
        logger.error(f"Failed to save health check history: {e}", exc_info=True)
        return None


async def get_latest_runs(status: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
    """
    Get the most recent health check runs, newest first.

    Args:
        status: Only runs with this overall status (None for all)
        limit: Maximum number of records to return
    """
    if not supabase:
        logger.warning("Supabase not initialized, cannot query health check history")
        return []

    try:
        query = supabase.table(HISTORY_TABLE).select("*").order("created_at", desc=True).limit(limit)
        if status:
            query = query.eq("status", status)

        response = query.execute()
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to query health check history: {e}", exc_info=True)
        return []
