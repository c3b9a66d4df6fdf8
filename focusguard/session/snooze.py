"""
Snooze Scheduler — time-boxed, per-target exemptions from the desired policy.

Entries expire two ways that converge on the same state: a one-shot timer
scheduled at snooze time (eager) and expire_due(), called from the session
tick (lazy). Whichever runs first removes the entry and fires on_expire; the
other then finds nothing to do.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..policy.targets import TargetKind, normalize
from .models import SnoozeEntry

logger = logging.getLogger(__name__)

DEFAULT_SNOOZE_S = 180.0

# call_later(delay_s, callback) -> handle with .cancel(); asyncio's loop.call_later fits
CallLater = Callable[[float, Callable[[], None]], Any]
ExpiryListener = Callable[[str, TargetKind], None]


class SnoozeScheduler:

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        call_later: Optional[CallLater] = None,
    ):
        self._clock = clock
        self._call_later = call_later
        self._entries: List[SnoozeEntry] = []
        self._handles: Dict[Tuple[str, TargetKind], List[Any]] = {}
        self.on_expire: Optional[ExpiryListener] = None

    def bind_timer(self, call_later: Optional[CallLater]) -> None:
        """Attach the timer source once an event loop exists."""
        self._call_later = call_later

    # ------------------------------------------------------------------
    # Grant / query
    # ------------------------------------------------------------------

    def snooze(
        self, target: str, kind: TargetKind, duration: float = DEFAULT_SNOOZE_S
    ) -> Optional[SnoozeEntry]:
        key = normalize(target, kind)
        if not key or duration <= 0:
            return None

        entry = SnoozeEntry(target=key, kind=kind, expires_at=self._clock() + duration)
        self._entries.append(entry)
        logger.info("Snoozed %s %r for %.0fs", kind.value, key, duration)

        if self._call_later is not None:
            handle = self._call_later(duration, lambda: self._expire(key, kind))
            self._handles.setdefault((key, kind), []).append(handle)
        return entry

    def is_snoozed(self, target: str, kind: TargetKind) -> bool:
        key = normalize(target, kind)
        now = self._clock()
        return any(
            e.target == key and e.kind == kind and e.is_active(now)
            for e in self._entries
        )

    def active_entries(self) -> List[SnoozeEntry]:
        now = self._clock()
        return [e for e in self._entries if e.is_active(now)]

    def expires_at(self, target: str, kind: TargetKind) -> Optional[float]:
        """Latest expiry among active entries for *target*, or None."""
        key = normalize(target, kind)
        times = [e.expires_at for e in self.active_entries()
                 if e.target == key and e.kind == kind]
        return max(times) if times else None

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def expire_due(self) -> List[Tuple[str, TargetKind]]:
        """Drop lapsed entries; returns the targets that are no longer exempt."""
        now = self._clock()
        lapsed = {(e.target, e.kind) for e in self._entries if not e.is_active(now)}
        released = []
        for target, kind in sorted(lapsed, key=lambda t: (t[1].value, t[0])):
            if self._expire(target, kind):
                released.append((target, kind))
        return released

    def _expire(self, target: str, kind: TargetKind) -> bool:
        now = self._clock()
        before = len(self._entries)
        self._entries = [
            e for e in self._entries
            if not (e.target == target and e.kind == kind and not e.is_active(now))
        ]
        if len(self._entries) == before:
            return False
        if self.is_snoozed(target, kind):
            # a later, overlapping snooze still covers this target
            return False

        self._handles.pop((target, kind), None)
        logger.info("Snooze ended for %s %r", kind.value, target)
        if self.on_expire is not None:
            try:
                self.on_expire(target, kind)
            except Exception:
                logger.exception("Snooze expiry listener failed for %r", target)
        return True

    def clear(self) -> None:
        """Remove every entry and cancel pending timers (session stopped)."""
        for handles in self._handles.values():
            for handle in handles:
                cancel = getattr(handle, "cancel", None)
                if cancel is not None:
                    cancel()
        self._handles.clear()
        self._entries.clear()
