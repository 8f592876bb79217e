"""Fire-and-forget hand-off from a write path to the push function.

Callers run inside the request or transaction that created the notification
row, so nothing here may raise back into them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from push.schemas.notification import NotificationEvent
from relay.clients.push_function import PushFunctionClient

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task[bool]] = set()


async def send_push_event(
    client: PushFunctionClient, event: NotificationEvent | dict[str, Any]
) -> bool:
    """Post ``event`` to the push function. Returns False instead of raising."""

    try:
        if not isinstance(event, NotificationEvent):
            event = NotificationEvent.model_validate(event)
        await client.post(event.model_dump(mode="json"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("relay.push_failed", extra={"error": repr(exc)})
        return False
    return True


def schedule_push_event(
    client: PushFunctionClient, event: NotificationEvent | dict[str, Any]
) -> asyncio.Task[bool]:
    """Start :func:`send_push_event` in the background and return its task."""

    task = asyncio.get_running_loop().create_task(send_push_event(client, event))
    # Strong reference until the task is done.
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
