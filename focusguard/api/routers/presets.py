"""
/presets — saved session templates.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.schemas import PresetIn, PresetOut, PresetStartRequest, SessionStateOut
from ...session.models import Preset

router = APIRouter(prefix="/presets", tags=["presets"])


async def _get_presets(request: Request):
    return request.app.state.services["presets"]


async def _get_controller(request: Request):
    return request.app.state.services["controller"]


def preset_out(p: Preset) -> PresetOut:
    return PresetOut(
        id=p.id,
        name=p.name,
        duration_seconds=p.duration,
        categories=[c.value for c in p.block_categories],
        apps=list(p.custom_apps),
        websites=list(p.custom_websites),
        source_session_id=p.source_session_id,
    )


@router.get("", response_model=List[PresetOut])
async def list_presets(presets=Depends(_get_presets)):
    return [preset_out(p) for p in presets.all()]


@router.post("", response_model=PresetOut, status_code=201)
async def create_preset(req: PresetIn, presets=Depends(_get_presets)):
    preset = presets.save(Preset(
        name=req.name,
        duration=req.duration_seconds,
        block_categories=tuple(req.categories),
        custom_apps=tuple(req.apps),
        custom_websites=tuple(req.websites),
    ))
    return preset_out(preset)


@router.delete("/{preset_id}")
async def delete_preset(preset_id: str, presets=Depends(_get_presets)):
    if not presets.delete(preset_id):
        raise HTTPException(status_code=404, detail="Preset not found")
    return {"status": "removed"}


@router.post("/{preset_id}/start", response_model=SessionStateOut)
async def start_from_preset(
    preset_id: str,
    req: Optional[PresetStartRequest] = None,
    presets=Depends(_get_presets),
    controller=Depends(_get_controller),
):
    preset = presets.get(preset_id)
    if preset is None:
        raise HTTPException(status_code=404, detail="Preset not found")
    session = presets.create_session(preset, goal=req.goal if req else "")
    if controller.start(session) is None:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot start while session is {controller.state.value}",
        )
    return SessionStateOut(**controller.snapshot())
