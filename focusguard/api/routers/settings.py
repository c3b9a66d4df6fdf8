"""
/settings — read and update user-tunable runtime settings.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    default_snooze_seconds:  Optional[int] = Field(None, ge=30, le=1800)
    extend_seconds:          Optional[int] = Field(None, ge=60, le=3600)
    notify_cooldown_seconds: Optional[int] = Field(None, ge=0,  le=600)
    notifications_enabled:   Optional[int] = Field(None, ge=0,  le=1)


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """Apply a partial update; unknown keys are ignored. Persists to <data_dir>/settings.json."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    return {"settings": update_settings(data)}
