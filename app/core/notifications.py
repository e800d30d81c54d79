# app/core/notifications.py
"""
Fire-and-forget UI feedback ("toasts").

Routers schedule `notify` through FastAPI BackgroundTasks so the response
never waits on delivery. Listeners are registered by whatever front channel
is wired in (websocket push, SSE, ...); with none registered the message is
only logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List
from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    user_id: UUID
    title: str
    description: str
    variant: str = "default"  # "default" | "destructive"


Listener = Callable[[Notification], None]

_listeners: List[Listener] = []


def add_listener(listener: Listener) -> None:
    _listeners.append(listener)


def remove_listener(listener: Listener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def notify(notification: Notification) -> None:
    logger.info(
        "notify user=%s [%s] %s: %s",
        notification.user_id,
        notification.variant,
        notification.title,
        notification.description,
    )
    for listener in list(_listeners):
        try:
            listener(notification)
        except Exception:
            # delivery is best effort
            logger.exception("notification listener %r failed", listener)
