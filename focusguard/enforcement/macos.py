"""
macOS capability — osascript (System Events + browser dictionaries) for
observation and action, psutil for cheap "is this browser running" checks.

Every osascript call is bounded by `timeout_s`; failures surface as
CapabilityError and are absorbed by the enforcers.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from .browsers import BrowserBackend
from .capability import CapabilityError, MatchPredicate, RunningApp, TabObservation, TabOutcome

logger = logging.getLogger(__name__)

_APPLICATION_DIRS = (
    Path("/Applications"),
    Path("/System/Applications"),
    Path.home() / "Applications",
)

_LIST_PROCESSES = """
set sep to character id 9
set out to ""
tell application "System Events"
    repeat with p in (application processes whose background only is false)
        set out to out & (name of p) & sep & (frontmost of p) & sep & (visible of p) & linefeed
    end repeat
end tell
return out
"""


def _quote(text: str) -> str:
    """Escape *text* as an AppleScript string literal."""
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class MacOSCapability:

    def __init__(self, timeout_s: float = 3.0, osascript: str = "/usr/bin/osascript"):
        self.timeout_s = timeout_s
        self.osascript = osascript

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def list_running_applications(self) -> List[RunningApp]:
        apps: List[RunningApp] = []
        for line in self._run(_LIST_PROCESSES).splitlines():
            parts = line.split("\t")
            if len(parts) != 3 or not parts[0]:
                continue
            name, frontmost, visible = parts
            apps.append(RunningApp(
                identifier=name,
                is_foreground=frontmost.strip() == "true",
                is_hidden=visible.strip() == "false",
            ))
        return apps

    def suppress(self, identifier: str) -> bool:
        # hide, never quit: blocking must not destroy unsaved work
        return self._set_visible(identifier, False)

    def restore(self, identifier: str) -> bool:
        return self._set_visible(identifier, True)

    def _set_visible(self, identifier: str, visible: bool) -> bool:
        proc = f"application process {_quote(identifier)}"
        script = f"""
tell application "System Events"
    if exists {proc} then
        set visible of {proc} to {"true" if visible else "false"}
        return "ok"
    end if
end tell
return "missing"
"""
        return self._run(script).strip() == "ok"

    def list_installed_applications(self) -> List[str]:
        names = set()
        for directory in _APPLICATION_DIRS:
            try:
                for item in directory.iterdir():
                    if item.suffix == ".app":
                        names.add(item.stem)
            except OSError:
                continue
        return sorted(names)

    # ------------------------------------------------------------------
    # Browsers
    # ------------------------------------------------------------------

    def is_running(self, backend: BrowserBackend) -> bool:
        wanted = {n.lower() for n in backend.process_names}
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info["name"]
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            if name and name.lower() in wanted:
                return True
        return False

    def redirect_tabs(
        self,
        backend: BrowserBackend,
        blocked_domains: Sequence[str],
        matches: MatchPredicate,
    ) -> TabOutcome:
        outcome = TabOutcome(backend=backend.key)
        if not blocked_domains:
            return outcome

        tabs = self.list_tabs(backend)
        outcome.inspected = len(tabs)
        for obs in tabs:
            if not matches(obs.url):
                continue
            try:
                if self._blank_tab(backend, obs):
                    outcome.redirected.append(obs)
            except CapabilityError as exc:
                # the tab moved or closed between listing and redirecting
                logger.debug("Redirect skipped in %s: %s", backend.name, exc)
        return outcome

    def list_tabs(self, backend: BrowserBackend) -> List[TabObservation]:
        if backend.active_tab_only:
            body = f"""
    try
        return "1" & sep & "0" & sep & (URL of {backend.active_tab_expr} of front window as text)
    on error
        return ""
    end try"""
        else:
            body = """
    set out to ""
    set wi to 0
    repeat with theWindow in windows
        set wi to wi + 1
        set ti to 0
        repeat with theTab in tabs of theWindow
            set ti to ti + 1
            try
                set out to out & wi & sep & ti & sep & (URL of theTab as text) & linefeed
            end try
        end repeat
    end repeat
    return out"""
        script = f"""
set sep to character id 9
tell application {backend.tell_target}
    if not running then return ""{body}
end tell
"""
        tabs: List[TabObservation] = []
        for line in self._run(script).splitlines():
            parts = line.split("\t", 2)
            if len(parts) != 3:
                continue
            try:
                tabs.append(TabObservation(window=int(parts[0]), tab=int(parts[1]), url=parts[2]))
            except ValueError:
                continue
        return tabs

    def _blank_tab(self, backend: BrowserBackend, obs: TabObservation) -> bool:
        if obs.tab == 0:
            tab_ref = f"{backend.active_tab_expr} of front window"
        else:
            tab_ref = f"tab {obs.tab} of window {obs.window}"
        script = f"""
tell application {backend.tell_target}
    if not running then return "gone"
    set theTab to {tab_ref}
    if (URL of theTab as text) is {_quote(obs.url)} then
        set URL of theTab to "about:blank"
        return "ok"
    end if
end tell
return "changed"
"""
        return self._run(script).strip() == "ok"

    # ------------------------------------------------------------------
    # osascript
    # ------------------------------------------------------------------

    def _run(self, script: str) -> str:
        try:
            result = subprocess.run(
                [self.osascript, "-e", script],
                capture_output=True, text=True, timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise CapabilityError(f"osascript timed out after {self.timeout_s}s") from exc
        except OSError as exc:
            raise CapabilityError(f"osascript unavailable: {exc}") from exc
        if result.returncode != 0:
            raise CapabilityError(result.stderr.strip() or f"osascript exit {result.returncode}")
        return result.stdout


def default_capability(timeout_s: float = 3.0, platform: Optional[str] = None):
    """Pick the capability for the running platform."""
    import sys

    from .capability import NullCapability

    if (platform or sys.platform) == "darwin":
        return MacOSCapability(timeout_s=timeout_s)
    logger.warning("No OS capability for %s; enforcement is disabled", platform or sys.platform)
    return NullCapability()
