"""
Block Notices — platform-aware "this is blocked" notice with a snooze option.

Subscribes to the enforcers' block events. The notice itself is a blocking
dialog, so it runs on a daemon thread; choosing "Snooze" publishes
SNOOZE_REQUESTED back onto the bus, where the session controller picks it up.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..policy.targets import TargetKind
from .events import APP_BLOCKED, SNOOZE_REQUESTED, WEBSITE_BLOCKED, EventBus

logger = logging.getLogger(__name__)


def snooze_label(seconds: float) -> str:
    """Button text for a snooze of *seconds*, e.g. "Snooze for 5 minutes"."""
    seconds = int(seconds)
    if seconds % 60:
        return f"Snooze for {seconds} seconds"
    minutes = seconds // 60
    return f"Snooze for {minutes} minute" + ("" if minutes == 1 else "s")


class BlockNotifier:

    def __init__(
        self,
        bus: EventBus,
        cooldown_s: float = 30.0,
        enabled: Callable[[], bool] = lambda: True,
        clock: Callable[[], float] = time.time,
        snooze_seconds: Callable[[], float] = lambda: 180.0,
        platform: Optional[str] = None,
    ):
        self._bus = bus
        self._cooldown_s = cooldown_s
        self._enabled = enabled
        self._clock = clock
        self._snooze_seconds = snooze_seconds
        self._platform = platform or sys.platform
        self._last_shown: Dict[Tuple[str, TargetKind], float] = {}
        self._open: set = set()
        self._lock = threading.Lock()
        bus.subscribe(APP_BLOCKED, self.on_blocked)
        bus.subscribe(WEBSITE_BLOCKED, self.on_blocked)

    def on_blocked(self, target: str, kind: TargetKind) -> bool:
        """Show a notice unless one for *target* is open or was shown recently."""
        if not self._enabled():
            return False
        key = (target, kind)
        now = self._clock()
        with self._lock:
            if key in self._open:
                return False
            last = self._last_shown.get(key)
            if last is not None and now - last < self._cooldown_s:
                return False
            self._last_shown[key] = now
            self._open.add(key)

        threading.Thread(
            target=self._show, args=(target, kind), daemon=True, name="FG-BlockNotice"
        ).start()
        return True

    def _show(self, target: str, kind: TargetKind) -> None:
        # read once so the button and the granted snooze agree
        seconds = float(self._snooze_seconds())
        try:
            if self.ask(target, kind, seconds):
                self._bus.publish_threadsafe(
                    SNOOZE_REQUESTED, target=target, kind=kind, duration=seconds
                )
        finally:
            with self._lock:
                self._open.discard((target, kind))

    def ask(self, target: str, kind: TargetKind, seconds: float) -> bool:
        """Present the notice; True if the user chose to snooze for *seconds*."""
        button = snooze_label(seconds)
        noun = "app" if kind == TargetKind.APP else "site"
        message = f"{target} is blocked during this focus session"
        detail = (
            f"This {noun} will stay blocked until your focus session ends. "
            f'Choose "{button}" if you need temporary access.'
        )
        if self._platform == "darwin":
            return self._macos_dialog(message, detail, button)
        logger.info("%s. %s", message, detail)
        return False

    # ------------------------------------------------------------------
    # Platform implementations
    # ------------------------------------------------------------------

    def _macos_dialog(self, message: str, detail: str, button: str) -> bool:
        text = f"{message}\n\n{detail}".replace("\\", "\\\\").replace('"', '\\"')
        script = (
            f'display dialog "{text}" with title "Focus" '
            f'buttons {{"OK", "{button}"}} default button "OK" giving up after 60'
        )
        try:
            result = subprocess.run(
                ["osascript", "-e", script],
                capture_output=True, text=True, timeout=75,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            logger.debug("Block notice failed: %s", exc)
            return False
        return f"button returned:{button}" in result.stdout
