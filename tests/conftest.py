"""
Shared pytest fixtures and in-memory fakes.

Nothing here touches the host OS: the OS capability, the clock and the
one-shot timer source are all fakes injected through constructors.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import focusguard.settings as settings_mod
from focusguard.api.app import create_app
from focusguard.enforcement.app_enforcer import AppEnforcer
from focusguard.enforcement.browsers import BrowserBackend
from focusguard.enforcement.capability import (
    CapabilityError,
    RunningApp,
    TabObservation,
    TabOutcome,
)
from focusguard.enforcement.events import EventBus
from focusguard.enforcement.website_enforcer import WebsiteEnforcer
from focusguard.session.controller import SessionController
from focusguard.session.snooze import SnoozeScheduler
from focusguard.store.json_store import JsonStore


# ── Fakes ────────────────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _Handle:
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Stands in for loop.call_later; fire due callbacks with run_due()."""

    def __init__(self, clock: FakeClock):
        self._clock = clock
        self.pending: List[tuple] = []

    def call_later(self, delay: float, fn: Callable[[], None]) -> _Handle:
        handle = _Handle()
        self.pending.append((self._clock.now + delay, fn, handle))
        return handle

    def run_due(self) -> int:
        due = [p for p in self.pending if p[0] <= self._clock.now]
        self.pending = [p for p in self.pending if p[0] > self._clock.now]
        fired = 0
        for _, fn, handle in due:
            if not handle.cancelled:
                fn()
                fired += 1
        return fired


class FakeCapability:
    """Scriptable stand-in for the OS: running apps and open browser tabs."""

    def __init__(self):
        self.apps: Dict[str, RunningApp] = {}
        self.tabs: Dict[str, List[str]] = {}
        self.suppressed: List[str] = []
        self.restored: List[str] = []
        self.installed: List[str] = ["Notes", "Slack", "Twitter"]
        self.fail_listing = False
        self.fail_tabs = False

    # apps

    def launch(self, name: str, foreground: bool = True) -> None:
        if foreground:
            self.apps = {
                k: RunningApp(k, is_foreground=False, is_hidden=v.is_hidden)
                for k, v in self.apps.items()
            }
        self.apps[name] = RunningApp(name, is_foreground=foreground)

    def list_running_applications(self) -> List[RunningApp]:
        if self.fail_listing:
            raise CapabilityError("System Events not responding")
        return list(self.apps.values())

    def suppress(self, identifier: str) -> bool:
        if identifier not in self.apps:
            return False
        self.apps[identifier] = RunningApp(identifier, is_foreground=False, is_hidden=True)
        self.suppressed.append(identifier)
        return True

    def restore(self, identifier: str) -> bool:
        self.restored.append(identifier)
        if identifier in self.apps:
            self.apps[identifier] = RunningApp(identifier, is_foreground=False, is_hidden=False)
            return True
        return False

    def list_installed_applications(self) -> List[str]:
        return sorted(self.installed)

    # browsers

    def is_running(self, backend: BrowserBackend) -> bool:
        return backend.key in self.tabs

    def redirect_tabs(
        self,
        backend: BrowserBackend,
        blocked_domains: Sequence[str],
        matches: Callable[[str], bool],
    ) -> TabOutcome:
        if self.fail_tabs:
            raise CapabilityError("AppleScript error -1728")
        urls = self.tabs.get(backend.key, [])
        indices = [len(urls) - 1] if backend.active_tab_only and urls else range(len(urls))
        outcome = TabOutcome(backend=backend.key)
        for i in indices:
            outcome.inspected += 1
            if matches(urls[i]):
                outcome.redirected.append(TabObservation(window=1, tab=i + 1, url=urls[i]))
                urls[i] = "about:blank"
        return outcome


class MemoryStore:
    def __init__(self):
        self.current = None
        self.presets = None
        self.history_items: list = []
        self.saves = 0

    def load_current_session(self):
        return self.current

    def save_current_session(self, session) -> bool:
        self.current = session
        self.saves += 1
        return True

    def load_presets(self):
        return self.presets

    def save_presets(self, presets) -> bool:
        self.presets = list(presets)
        return True

    def load_history(self):
        return list(self.history_items)

    def save_history(self, history) -> bool:
        self.history_items = list(history)
        return True


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep the settings store out of the real data directory."""
    monkeypatch.setattr(settings_mod, "_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(settings_mod, "_current", {})
    yield tmp_path / "settings.json"


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def timers(clock) -> FakeTimers:
    return FakeTimers(clock)


@pytest.fixture()
def capability() -> FakeCapability:
    return FakeCapability()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def snoozes(clock, timers) -> SnoozeScheduler:
    return SnoozeScheduler(clock=clock, call_later=timers.call_later)


@pytest.fixture()
def app_enforcer(capability, bus, snoozes) -> AppEnforcer:
    return AppEnforcer(capability, bus=bus, is_exempt=snoozes.is_snoozed)


@pytest.fixture()
def website_enforcer(capability, bus, snoozes) -> WebsiteEnforcer:
    return WebsiteEnforcer(capability, bus=bus, is_exempt=snoozes.is_snoozed)


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "data")


@pytest.fixture()
def controller(app_enforcer, website_enforcer, store, snoozes, bus, clock) -> SessionController:
    return SessionController(
        app_enforcer, website_enforcer, store=store, snoozes=snoozes, bus=bus, clock=clock
    )


@pytest.fixture()
def app(tmp_path, capability):
    """A fresh app wired to the fake capability and a temp data dir."""
    return create_app(capability=capability, data_dir=tmp_path / "data", notifications=False)


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
