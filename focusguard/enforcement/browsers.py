"""
Browser backends — per-browser automation capabilities as data.

Adding a browser is a new BROWSERS entry, not a new code path. Flags:

  scriptable        False → the backend is skipped silently (no usable tab API)
  active_tab_only   True  → only the front window's active tab is inspected;
                            used where enumerating every tab is unreliable
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class BrowserBackend:
    key: str
    name: str
    bundle_id: str
    process_names: Tuple[str, ...]
    tell_by_id: bool = False          # address by bundle id instead of app name
    active_tab_expr: str = "active tab"
    active_tab_only: bool = False
    scriptable: bool = True

    @property
    def tell_target(self) -> str:
        if self.tell_by_id:
            return f'id "{self.bundle_id}"'
        return f'"{self.name}"'


BROWSERS: Dict[str, BrowserBackend] = {
    "safari": BrowserBackend(
        key="safari",
        name="Safari",
        bundle_id="com.apple.Safari",
        process_names=("Safari",),
        active_tab_expr="current tab",
    ),
    "chrome": BrowserBackend(
        key="chrome",
        name="Google Chrome",
        bundle_id="com.google.Chrome",
        process_names=("Google Chrome",),
    ),
    "brave": BrowserBackend(
        key="brave",
        name="Brave Browser",
        bundle_id="com.brave.Browser",
        process_names=("Brave Browser",),
    ),
    "edge": BrowserBackend(
        key="edge",
        name="Microsoft Edge",
        bundle_id="com.microsoft.edgemac",
        process_names=("Microsoft Edge",),
    ),
    # Arc's tab list throws invalid-index errors mid-iteration; use the active tab only.
    "arc": BrowserBackend(
        key="arc",
        name="Arc",
        bundle_id="company.thebrowser.Browser",
        process_names=("Arc",),
        tell_by_id=True,
        active_tab_only=True,
    ),
    # Firefox exposes no AppleScript tab surface.
    "firefox": BrowserBackend(
        key="firefox",
        name="Firefox",
        bundle_id="org.mozilla.firefox",
        process_names=("firefox", "Firefox"),
        scriptable=False,
    ),
}


def supported_backends() -> List[BrowserBackend]:
    return [b for b in BROWSERS.values() if b.scriptable]
