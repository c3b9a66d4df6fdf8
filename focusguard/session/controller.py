"""
Session Controller — the focus-session state machine.

    Idle ──start──▶ Active ──pause──▶ Paused
                      ▲  │              │
                      │  └──resume◀─────┘
                      │
    Active/Paused ──stop──▶ Idle      (history record appended)
    Active ──tick, remaining == 0──▶ Completed ──▶ Idle

Owns the current Session, the snooze set and the history list. Derives the
desired policy and pushes it to the enforcers; the enforcers never write back.
Guarded transitions return False/None and leave state untouched when their
precondition does not hold.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

from ..enforcement.app_enforcer import AppEnforcer
from ..enforcement.events import (
    SESSION_CHANGED,
    SESSION_COMPLETED,
    SESSION_TICK,
    SNOOZE_REQUESTED,
    EventBus,
)
from ..enforcement.website_enforcer import WebsiteEnforcer
from ..policy.desired import EMPTY_POLICY, DesiredPolicy, compute_desired_policy
from ..policy.targets import TargetKind, normalize_all
from ..store.base import Store
from .models import Session, SnoozeEntry, format_remaining
from .snooze import DEFAULT_SNOOZE_S, SnoozeScheduler

logger = logging.getLogger(__name__)

DEFAULT_EXTEND_S = 300.0


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class SessionController:

    def __init__(
        self,
        app_enforcer: AppEnforcer,
        website_enforcer: WebsiteEnforcer,
        store: Optional[Store] = None,
        snoozes: Optional[SnoozeScheduler] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._apps = app_enforcer
        self._websites = website_enforcer
        self._store = store
        self._clock = clock
        self._snoozes = snoozes or SnoozeScheduler(clock=clock)
        self._snoozes.on_expire = self._on_snooze_expired
        self._bus = bus or EventBus()
        self._bus.subscribe(SNOOZE_REQUESTED, self._on_snooze_requested)

        self._session: Optional[Session] = None
        self._history: List[Session] = []
        self._restore()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.IDLE
        if self._session.paused:
            return SessionState.PAUSED
        return SessionState.ACTIVE

    @property
    def current_session(self) -> Optional[Session]:
        return self._session.copy() if self._session else None

    @property
    def snoozes(self) -> SnoozeScheduler:
        return self._snoozes

    def remaining(self) -> float:
        if self._session is None:
            return 0.0
        return self._session.remaining(self._clock())

    def desired_policy(self) -> DesiredPolicy:
        """What the current session blocks right now, snoozes excluded."""
        s = self._session
        if s is None:
            return EMPTY_POLICY
        return compute_desired_policy(
            s.blocked_apps, s.blocked_websites, s.block_categories,
            self._snoozes.is_snoozed,
        )

    def snapshot(self) -> dict:
        now = self._clock()
        s = self._session
        remaining = s.remaining(now) if s else 0.0
        return {
            "state": self.state.value,
            "session": s.to_dict() if s else None,
            "remaining_seconds": remaining,
            "remaining_label": format_remaining(remaining),
            "progress": s.progress(now) if s else 0.0,
            "enforcing": self.state == SessionState.ACTIVE,
            "policy": self.desired_policy().to_dict(),
            "snoozes": [
                {"target": e.target, "kind": e.kind.value, "expires_at": e.expires_at}
                for e in self._snoozes.active_entries()
            ],
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, session: Session) -> Optional[Session]:
        if self.state != SessionState.IDLE:
            logger.debug("start() rejected in state %s", self.state.value)
            return None

        now = self._clock()
        new = session.copy()
        new.blocked_apps = normalize_all(new.blocked_apps, TargetKind.APP)
        new.blocked_websites = normalize_all(new.blocked_websites, TargetKind.WEBSITE)
        new.start_time = now
        new.end_time = now + new.duration
        new.active = True
        new.paused = False
        new.paused_at = None
        new.total_paused_time = 0.0

        self._snoozes.clear()
        self._session = new
        self._apply_policy()
        self._persist_current()
        logger.info("Session %s started (%.0fs, goal=%r)", new.id, new.duration, new.goal)
        self._changed()
        return new.copy()

    def pause(self) -> bool:
        if self.state != SessionState.ACTIVE:
            logger.debug("pause() rejected in state %s", self.state.value)
            return False
        s = self._session
        s.paused = True
        s.paused_at = self._clock()
        # pausing grants full access: every block is lifted, not just snoozed ones
        self._lift_policy()
        self._persist_current()
        logger.info("Session %s paused", s.id)
        self._changed()
        return True

    def resume(self) -> bool:
        if self.state != SessionState.PAUSED:
            logger.debug("resume() rejected in state %s", self.state.value)
            return False
        s = self._session
        now = self._clock()
        if s.paused_at is not None:
            s.total_paused_time += max(0.0, now - s.paused_at)
        s.paused = False
        s.paused_at = None
        self._apply_policy()
        self._persist_current()
        logger.info("Session %s resumed", s.id)
        self._changed()
        return True

    def stop(self) -> Optional[Session]:
        """End the session; returns the history record, or None if idle."""
        if self._session is None:
            return None
        s = self._session
        now = self._clock()

        # enforcers take their locks here, so no block action outlives stop()
        self._lift_policy()

        record = None
        if s.active:
            record = s.copy()
            if record.paused and record.paused_at is not None:
                record.total_paused_time += max(0.0, now - record.paused_at)
            record.active = False
            record.paused = False
            record.paused_at = None
            record.end_time = now
            self._history.append(record)
            self._persist_history()

        self._session = None
        self._snoozes.clear()
        self._persist_current()
        logger.info("Session %s stopped", s.id)
        self._changed()
        return record.copy() if record else None

    def extend(self, by: float = DEFAULT_EXTEND_S) -> bool:
        s = self._session
        if self.state != SessionState.ACTIVE or by <= 0:
            logger.debug("extend(%s) rejected in state %s", by, self.state.value)
            return False
        s.duration += by
        if s.end_time is not None:
            s.end_time += by
        self._persist_current()
        self._changed()
        return True

    def tick(self) -> SessionState:
        """Called every session_tick_s by the runtime loop."""
        self._snoozes.expire_due()
        s = self._session
        if s is None:
            return SessionState.IDLE
        if s.paused:
            return SessionState.PAUSED
        if s.is_completed(self._clock()):
            record = self.stop()
            logger.info("Focus session completed")
            self._bus.publish(SESSION_COMPLETED, session=record)
            return SessionState.COMPLETED
        self._bus.publish(SESSION_TICK, remaining=self.remaining())
        return SessionState.ACTIVE

    # ------------------------------------------------------------------
    # Snoozes
    # ------------------------------------------------------------------

    def snooze(
        self, target: str, kind: TargetKind, duration: float = DEFAULT_SNOOZE_S
    ) -> Optional[SnoozeEntry]:
        if self._session is None:
            logger.debug("snooze(%r) rejected: no session", target)
            return None
        entry = self._snoozes.snooze(target, kind, duration)
        if entry is None:
            return None
        if self.state == SessionState.ACTIVE:
            self._apply_policy()
        self._changed()
        return entry

    def is_app_snoozed(self, app: str) -> bool:
        return self._snoozes.is_snoozed(app, TargetKind.APP)

    def is_website_snoozed(self, domain: str) -> bool:
        return self._snoozes.is_snoozed(domain, TargetKind.WEBSITE)

    def _on_snooze_requested(self, target: str, kind: TargetKind, duration: float = DEFAULT_SNOOZE_S) -> None:
        self.snooze(target, TargetKind(kind), duration)

    def _on_snooze_expired(self, target: str, kind: TargetKind) -> None:
        # may fire after stop() or during a pause; only an active session re-blocks
        if self.state != SessionState.ACTIVE:
            return
        self._apply_policy()
        self._changed()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history(self, limit: Optional[int] = None) -> List[Session]:
        """Newest first."""
        items = [s.copy() for s in reversed(self._history)]
        return items[:limit] if limit is not None else items

    def find_history(self, session_id: str) -> Optional[Session]:
        for s in self._history:
            if s.id == session_id:
                return s.copy()
        return None

    def delete_history(self, session_id: str) -> bool:
        before = len(self._history)
        self._history = [s for s in self._history if s.id != session_id]
        if len(self._history) == before:
            return False
        self._persist_history()
        return True

    def clear_history(self) -> None:
        self._history.clear()
        self._persist_history()

    # ------------------------------------------------------------------
    # Enforcement + persistence
    # ------------------------------------------------------------------

    def release(self) -> None:
        """Lift enforcement without touching the session (process shutdown)."""
        self._lift_policy()

    def _apply_policy(self) -> None:
        policy = self.desired_policy()
        self._apps.set_desired(policy.apps)
        self._websites.set_desired(policy.websites)

    def _lift_policy(self) -> None:
        self._apps.unblock_all()
        self._websites.unblock_all()

    def _changed(self) -> None:
        self._bus.publish(SESSION_CHANGED, state=self.state)

    def _persist_current(self) -> None:
        if self._store is not None:
            self._store.save_current_session(self._session.copy() if self._session else None)

    def _persist_history(self) -> None:
        if self._store is not None:
            self._store.save_history([s.copy() for s in self._history])

    def _restore(self) -> None:
        if self._store is None:
            return
        self._history = list(self._store.load_history())
        session = self._store.load_current_session()
        if session is None or not session.active:
            return
        self._session = session
        if not session.paused:
            self._apply_policy()
        logger.info("Restored %s session %s", self.state.value, session.id)
