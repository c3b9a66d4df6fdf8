"""
Event Bus — decouples the enforcement path from the session-policy path.

Enforcers publish what they observe ("app_blocked", "website_blocked"), the
block notifier publishes "snooze_requested", and the session controller
subscribes. No component calls across that boundary directly.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Optional

logger = logging.getLogger(__name__)

APP_BLOCKED = "app_blocked"
WEBSITE_BLOCKED = "website_blocked"
SNOOZE_REQUESTED = "snooze_requested"
SESSION_COMPLETED = "session_completed"
SESSION_CHANGED = "session_changed"
SESSION_TICK = "session_tick"

Listener = Callable[..., Any]


class EventBus:
    """
    Synchronous publish/subscribe.

    Usage:
        bus = EventBus()
        bus.subscribe(SNOOZE_REQUESTED, lambda target, kind, duration: ...)
        bus.publish(SNOOZE_REQUESTED, target="Twitter", kind=TargetKind.APP, duration=180)
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self._loop = loop

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._loop = loop

    def subscribe(self, event: str, fn: Listener) -> None:
        self._listeners[event].append(fn)

    def unsubscribe(self, event: str, fn: Listener) -> None:
        if fn in self._listeners.get(event, []):
            self._listeners[event].remove(fn)

    def publish(self, event: str, **payload: Any) -> int:
        """Call every listener for *event*; returns how many ran without error."""
        delivered = 0
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(**payload)
                delivered += 1
            except Exception:
                logger.exception("Listener for %r failed", event)
        return delivered

    def publish_threadsafe(self, event: str, **payload: Any) -> None:
        """Publish from a worker thread; delivery happens on the bound loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            self.publish(event, **payload)
            return
        loop.call_soon_threadsafe(lambda: self.publish(event, **payload))
