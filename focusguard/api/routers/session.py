"""
/session — start, pause, resume, stop, extend and snooze the focus session.

Handlers here, in presets and in history are async: controller calls must run
on the event loop, which is the only thread that mutates session state.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import (
    ExtendRequest,
    PolicyOut,
    SessionStartRequest,
    SessionStateOut,
    SnoozeRequest,
)
from ...config import config
from ...session.controller import SessionState
from ...session.models import Session
from ...settings import get_settings

router = APIRouter(prefix="/session", tags=["session"])


async def _get_controller(request: Request):
    return request.app.state.services["controller"]


def _state(controller) -> SessionStateOut:
    return SessionStateOut(**controller.snapshot())


def _conflict(controller, action: str) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail=f"Cannot {action} while session is {controller.state.value}",
    )


@router.get("", response_model=SessionStateOut)
async def get_session(controller=Depends(_get_controller)):
    """Return the current session snapshot (idle when no session exists)."""
    return _state(controller)


@router.post("/start", response_model=SessionStateOut)
async def start_session(req: SessionStartRequest, controller=Depends(_get_controller)):
    session = Session(
        goal=req.goal,
        duration=req.duration_seconds,
        blocked_apps=req.apps,
        blocked_websites=req.websites,
        block_categories=list(dict.fromkeys(req.categories)),
    )
    if controller.start(session) is None:
        raise _conflict(controller, "start")
    return _state(controller)


@router.post("/pause", response_model=SessionStateOut)
async def pause_session(controller=Depends(_get_controller)):
    if not controller.pause():
        raise _conflict(controller, "pause")
    return _state(controller)


@router.post("/resume", response_model=SessionStateOut)
async def resume_session(controller=Depends(_get_controller)):
    if not controller.resume():
        raise _conflict(controller, "resume")
    return _state(controller)


@router.post("/stop", response_model=SessionStateOut)
async def stop_session(controller=Depends(_get_controller)):
    """Stop and record the session. Stopping an idle controller is a no-op."""
    controller.stop()
    return _state(controller)


@router.post("/extend", response_model=SessionStateOut)
async def extend_session(req: Optional[ExtendRequest] = None, controller=Depends(_get_controller)):
    seconds = req.seconds if req and req.seconds else get_settings()["extend_seconds"]
    if not controller.extend(seconds):
        raise _conflict(controller, "extend")
    return _state(controller)


@router.post("/snooze", response_model=SessionStateOut)
async def snooze_target(req: SnoozeRequest, controller=Depends(_get_controller)):
    """Exempt one app or site from blocking for a few minutes."""
    if controller.state == SessionState.IDLE:
        raise _conflict(controller, "snooze")
    duration = req.duration_seconds or get_settings()["default_snooze_seconds"]
    if controller.snooze(req.target, req.kind, duration) is None:
        raise HTTPException(status_code=422, detail=f"Invalid {req.kind.value}: {req.target!r}")
    return _state(controller)


@router.get("/policy", response_model=PolicyOut)
async def get_policy(controller=Depends(_get_controller)):
    """Targets the current session blocks right now (snoozed ones excluded)."""
    return PolicyOut(**controller.desired_policy().to_dict())


@router.websocket("/ws")
async def session_websocket(websocket: WebSocket):
    """
    WebSocket stream — pushes the session snapshot every session tick.
    Menu-bar and dashboard clients subscribe to this for the countdown.
    """
    controller = websocket.app.state.services["controller"]
    await websocket.accept()
    try:
        while True:
            await websocket.send_json(_state(controller).model_dump())
            await asyncio.sleep(config.session_tick_s)
    except WebSocketDisconnect:
        pass
