"""
Desktop notifications for host lifecycle events.

Maps session events to a title/message pair and delivers it with
notify-send. Events without a mapping are ignored.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Tuple

from mcp_healthcheck.errors import NotificationError

logger = logging.getLogger(__name__)

NOTIFY_COMMAND = "notify-send"

EVENT_NOTIFICATIONS: Dict[str, Tuple[str, str]] = {
    "session.complete": (
        "✅ Task Completed",
        "OpenCode has finished the task. Ready for review.",
    ),
    "permission.request": (
        "🔒 Permission Required",
        "OpenCode is waiting for your permission to proceed.",
    ),
    "session.error": (
        "❌ Error Occurred",
        "An error happened in your OpenCode session. Please check the terminal.",
    ),
}

Sender = Callable[[str, str], Awaitable[None]]


async def send_notification(title: str, message: str):
    """
    Show a desktop notification via notify-send.

    Title and message are passed as separate argv entries, never through a shell.

    Raises:
        NotificationError: If notify-send is missing or exits non-zero
    """
    try:
        process = await asyncio.create_subprocess_exec(
            NOTIFY_COMMAND, title, message,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise NotificationError(f"{NOTIFY_COMMAND} not installed") from e

    _, stderr = await process.communicate()
    if process.returncode != 0:
        detail = stderr.decode(errors="replace").strip() if stderr else ""
        raise NotificationError(f"{NOTIFY_COMMAND} exited with {process.returncode}: {detail}")


async def handle_event(event: Mapping[str, Any], sender: Sender = send_notification) -> bool:
    """
    Dispatch a lifecycle event to a desktop notification.

    Args:
        event: Event payload with a "type" key
        sender: Coroutine delivering (title, message)

    Returns:
        bool: True if a notification was sent, False if the event type is unmapped
    """
    event_type = event.get("type")
    notification = EVENT_NOTIFICATIONS.get(event_type)
    if notification is None:
        logger.debug(f"Event fired: {event_type}")
        return False

    title, message = notification
    await sender(title, message)
    logger.info(f"Sent notification for {event_type}")
    return True
