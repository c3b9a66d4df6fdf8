"""
App Enforcer — keeps blocked applications out of the foreground.

Reconciles the desired app set against the OS capability's view of running
applications: a blocked app seen in the foreground is hidden (never quit),
and only apps this enforcer hid are ever un-hidden again.

The lock only guards the in-memory sets; it is never held across an OS call,
so callers on the event loop never wait on osascript. A suppress that was in
flight when its app left the desired set is undone as soon as it returns.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, List, Optional, Set

from ..policy.targets import TargetKind, normalize_app_name
from .capability import OSCapability
from .events import APP_BLOCKED, EventBus

logger = logging.getLogger(__name__)

ExemptCheck = Callable[[str, TargetKind], bool]
# defer(job) runs job off the caller's thread; the app passes run_in_executor
Defer = Callable[[Callable[[], None]], Any]


class AppEnforcer:
    """
    Usage:
        enforcer = AppEnforcer(capability)
        enforcer.set_desired({"Twitter", "Steam"})
        enforcer.poll()          # called every enforcement_interval_s
        enforcer.unblock_all()
    """

    def __init__(
        self,
        capability: OSCapability,
        bus: Optional[EventBus] = None,
        is_exempt: Optional[ExemptCheck] = None,
        defer: Optional[Defer] = None,
    ):
        self._capability = capability
        self._bus = bus
        self._is_exempt = is_exempt
        self._defer = defer
        self._desired: Set[str] = set()
        self._suppressed: Set[str] = set()
        self._lock = threading.RLock()
        self._poll_guard = threading.Lock()
        self._failing = False

    # ------------------------------------------------------------------
    # Desired set
    # ------------------------------------------------------------------

    def set_desired(self, apps: Iterable[str]) -> None:
        desired = {n for n in (normalize_app_name(a) for a in apps) if n}
        with self._lock:
            removed = self._desired - desired
            self._desired = desired
            released = self._release(removed)
        self._schedule_restore(released)

    def block(self, app: str) -> bool:
        name = normalize_app_name(app)
        if not name:
            return False
        with self._lock:
            self._desired.add(name)
        return True

    def unblock(self, app: str) -> bool:
        name = normalize_app_name(app)
        with self._lock:
            if name not in self._desired:
                return False
            self._desired.discard(name)
            released = self._release({name})
        self._schedule_restore(released)
        return True

    def unblock_all(self) -> None:
        """Clear the desired set and un-hide everything this enforcer hid."""
        with self._lock:
            self._desired.clear()
            released = self._release(set(self._suppressed))
        self._schedule_restore(released)

    def is_blocked(self, app: str) -> bool:
        with self._lock:
            return normalize_app_name(app) in self._desired

    @property
    def blocked_apps(self) -> List[str]:
        with self._lock:
            return sorted(self._desired)

    @property
    def suppressed_apps(self) -> List[str]:
        with self._lock:
            return sorted(self._suppressed)

    @property
    def is_polling(self) -> bool:
        """Polling only costs anything while something is blocked."""
        with self._lock:
            return bool(self._desired)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def poll(self) -> List[str]:
        """One reconciliation cycle; returns the apps suppressed this cycle."""
        if not self._poll_guard.acquire(blocking=False):
            return []       # previous cycle still talking to the OS
        try:
            return self._poll()
        finally:
            self._poll_guard.release()

    def _poll(self) -> List[str]:
        if not self.is_polling:
            return []
        try:
            running = self._capability.list_running_applications()
        except Exception as exc:
            self._observation_failed("list running applications", exc)
            return []
        self._failing = False

        hidden: List[str] = []
        for app in running:
            if not app.is_foreground:
                continue
            name = normalize_app_name(app.identifier)
            if not self._wanted(name):
                continue
            try:
                done = self._capability.suppress(name)
            except Exception as exc:
                self._observation_failed(f"suppress {name!r}", exc)
                continue
            if not done:
                continue

            with self._lock:
                kept = self._wanted(name)
                if kept:
                    self._suppressed.add(name)
            if not kept:
                # unblocked or snoozed while the call was in flight
                logger.debug("Undoing late suppress of %r", name)
                self._restore([name])
                continue

            hidden.append(name)
            logger.info("Suppressed blocked app %r", name)
            if self._bus is not None:
                self._bus.publish_threadsafe(APP_BLOCKED, target=name, kind=TargetKind.APP)
        return hidden

    def _wanted(self, name: str) -> bool:
        if not name:
            return False
        with self._lock:
            if name not in self._desired:
                return False
        return self._is_exempt is None or not self._is_exempt(name, TargetKind.APP)

    def _release(self, names: Set[str]) -> List[str]:
        # caller holds self._lock
        released = sorted(names & self._suppressed)
        self._suppressed.difference_update(released)
        return released

    def _schedule_restore(self, names: List[str]) -> None:
        if not names:
            return
        if self._defer is None:
            self._restore(names)
        else:
            self._defer(lambda: self._restore(names))

    def _restore(self, names: List[str]) -> None:
        for name in names:
            with self._lock:
                if name in self._suppressed:
                    continue        # hidden again by a newer cycle
            try:
                self._capability.restore(name)
            except Exception as exc:
                # app quit or System Events unavailable; nothing left to undo
                logger.debug("Could not restore %r: %s", name, exc)

    def _observation_failed(self, what: str, exc: Exception) -> None:
        if self._failing:
            logger.debug("App poll: %s failed again: %s", what, exc)
        else:
            logger.warning("App poll: %s failed, retrying next cycle: %s", what, exc)
            self._failing = True
