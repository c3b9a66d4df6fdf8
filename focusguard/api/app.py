"""
FastAPI application — local focus-session API.
Runs on http://127.0.0.1:8766 by default.

All runtime objects (controller, enforcers, bus, store) are built per app in
the lifespan and live on app.state, so every create_app() call is fully
independent. The OS capability and data directory can be injected, which is
how the tests run the whole stack against fakes.

Two background tasks share the event loop, which is the only thread that
mutates session, snooze and policy state:
  - the session tick (session_tick_s)
  - the enforcement loop (enforcement_interval_s, or sooner when kicked);
    each enforcer poll runs in the default executor under a timeout
Un-hiding apps after a stop or unblock is also pushed to the executor.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Optional, Sequence, Set

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..enforcement.app_enforcer import AppEnforcer
from ..enforcement.capability import OSCapability
from ..enforcement.events import SESSION_CHANGED, EventBus
from ..enforcement.macos import default_capability
from ..enforcement.notifications import BlockNotifier
from ..enforcement.website_enforcer import WebsiteEnforcer
from ..session.controller import SessionController
from ..session.presets import PresetLibrary
from ..session.snooze import SnoozeScheduler
from ..settings import get_settings
from ..store.json_store import JsonStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Background loops
# ---------------------------------------------------------------------------

async def _session_loop(controller: SessionController, interval_s: float) -> None:
    while True:
        await asyncio.sleep(interval_s)
        try:
            controller.tick()
        except Exception:
            logger.exception("Session tick failed")


async def _enforcement_loop(
    enforcers: Sequence, kick: asyncio.Event, interval_s: float, timeout_s: float
) -> None:
    loop = asyncio.get_running_loop()
    while True:
        try:
            await asyncio.wait_for(kick.wait(), timeout=interval_s)
        except asyncio.TimeoutError:
            pass
        kick.clear()
        for enforcer in enforcers:
            if not enforcer.is_polling:
                continue
            try:
                await asyncio.wait_for(
                    loop.run_in_executor(None, enforcer.poll), timeout=timeout_s
                )
            except asyncio.TimeoutError:
                logger.warning("%s poll exceeded %.1fs; skipped", type(enforcer).__name__, timeout_s)
            except Exception:
                logger.exception("%s poll failed", type(enforcer).__name__)


# ---------------------------------------------------------------------------
# Lifespan: initialises and tears down all per-app state
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    loop = asyncio.get_running_loop()
    clock: Callable[[], float] = app.state.clock
    capability: OSCapability = app.state.capability or default_capability(
        timeout_s=config.external_call_timeout_s
    )
    store = JsonStore(app.state.data_dir)

    bus = EventBus(loop=loop)
    snoozes = SnoozeScheduler(clock=clock, call_later=loop.call_later)
    restores: Set[asyncio.Future] = set()

    def defer(job: Callable[[], None]) -> None:
        future = loop.run_in_executor(None, job)
        restores.add(future)
        future.add_done_callback(restores.discard)

    apps = AppEnforcer(capability, bus=bus, is_exempt=snoozes.is_snoozed, defer=defer)
    websites = WebsiteEnforcer(capability, bus=bus, is_exempt=snoozes.is_snoozed)
    controller = SessionController(apps, websites, store=store, snoozes=snoozes, bus=bus, clock=clock)
    presets = PresetLibrary(store)

    if app.state.notifications:
        BlockNotifier(
            bus,
            cooldown_s=get_settings()["notify_cooldown_seconds"],
            enabled=lambda: bool(get_settings()["notifications_enabled"]),
            clock=clock,
            snooze_seconds=lambda: get_settings()["default_snooze_seconds"],
        )

    kick = asyncio.Event()
    bus.subscribe(SESSION_CHANGED, lambda state: kick.set())

    app.state.capability = capability
    app.state.bus = bus
    app.state.services = {
        "controller": controller,
        "presets": presets,
        "apps": apps,
        "websites": websites,
        "store": store,
    }

    tasks = [
        asyncio.create_task(_session_loop(controller, config.session_tick_s)),
        asyncio.create_task(_enforcement_loop(
            [apps, websites], kick, config.enforcement_interval_s, config.poll_timeout_s,
        )),
    ]
    if controller.current_session is not None:
        kick.set()

    yield

    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
    # leave the session persisted for the next launch, but give every app back
    controller.release()
    if restores:
        await asyncio.wait(set(restores), timeout=config.poll_timeout_s)
    snoozes.bind_timer(None)
    bus.bind_loop(None)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    capability: Optional[OSCapability] = None,
    data_dir: Optional[Path] = None,
    clock: Callable[[], float] = time.time,
    notifications: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="Focus Guard",
        description="Local focus-session engine: time-boxed app and website blocking",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.capability = capability
    app.state.data_dir = Path(data_dir) if data_dir is not None else config.data_dir
    app.state.clock = clock
    app.state.notifications = notifications

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import catalog, history, presets, session, settings

    app.include_router(session.router)
    app.include_router(presets.router)
    app.include_router(history.router)
    app.include_router(catalog.router)
    app.include_router(settings.router)

    @app.get("/health")
    def health(request: Request):
        services = getattr(request.app.state, "services", None)
        state = services["controller"].state.value if services else "unknown"
        return {"status": "ok", "version": "0.1.0", "session": state}

    return app


app = create_app()
