"""
/history — finished sessions, newest first.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...api.routers.presets import preset_out
from ...api.schemas import HistoryEntryOut, PresetOut

router = APIRouter(prefix="/history", tags=["history"])


async def _get_controller(request: Request):
    return request.app.state.services["controller"]


async def _get_presets(request: Request):
    return request.app.state.services["presets"]


@router.get("", response_model=List[HistoryEntryOut])
async def list_history(
    limit: int = Query(default=50, ge=1, le=1000),
    controller=Depends(_get_controller),
    presets=Depends(_get_presets),
):
    return [
        HistoryEntryOut(**s.to_dict(), saved_as_preset=presets.is_session_saved(s.id))
        for s in controller.history(limit=limit)
    ]


@router.delete("/{session_id}")
async def delete_history_entry(session_id: str, controller=Depends(_get_controller)):
    if not controller.delete_history(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "removed"}


@router.delete("")
async def clear_history(controller=Depends(_get_controller)):
    controller.clear_history()
    return {"status": "cleared"}


@router.post("/{session_id}/preset", response_model=PresetOut, status_code=201)
async def save_as_preset(
    session_id: str,
    controller=Depends(_get_controller),
    presets=Depends(_get_presets),
):
    """Turn a finished session into a preset; saving the same session twice is a no-op."""
    session = controller.find_history(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return preset_out(presets.save_from_session(session))
