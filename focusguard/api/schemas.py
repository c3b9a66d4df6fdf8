"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..policy.categories import BlockCategory
from ..policy.targets import TargetKind

# ── Session ────────────────────────────────────────────────────────────────

class SessionStartRequest(BaseModel):
    goal: str = ""
    duration_seconds: float = Field(1500, gt=0, le=24 * 3600)
    categories: List[BlockCategory] = Field(default_factory=list)
    apps: List[str] = Field(default_factory=list)
    websites: List[str] = Field(default_factory=list)


class ExtendRequest(BaseModel):
    seconds: Optional[float] = Field(None, gt=0, le=4 * 3600)


class SessionOut(BaseModel):
    id: str
    goal: str
    duration: float
    start_time: Optional[float]
    end_time: Optional[float]
    blocked_apps: List[str]
    blocked_websites: List[str]
    block_categories: List[str]
    active: bool
    paused: bool
    paused_at: Optional[float]
    total_paused_time: float


class PolicyOut(BaseModel):
    apps: List[str]
    websites: List[str]


class SnoozeOut(BaseModel):
    target: str
    kind: str
    expires_at: float


class SessionStateOut(BaseModel):
    state: str = Field(..., description="idle | active | paused")
    session: Optional[SessionOut]
    remaining_seconds: float
    remaining_label: str
    progress: float = Field(..., ge=0.0, le=1.0)
    enforcing: bool
    policy: PolicyOut
    snoozes: List[SnoozeOut]


# ── Snooze ─────────────────────────────────────────────────────────────────

class SnoozeRequest(BaseModel):
    target: str = Field(..., min_length=1, description="App name or website domain")
    kind: TargetKind
    duration_seconds: Optional[float] = Field(None, gt=0, le=3600)


# ── Presets ────────────────────────────────────────────────────────────────

class PresetIn(BaseModel):
    name: str = Field(..., min_length=1)
    duration_seconds: float = Field(..., gt=0, le=24 * 3600)
    categories: List[BlockCategory] = Field(default_factory=list)
    apps: List[str] = Field(default_factory=list)
    websites: List[str] = Field(default_factory=list)


class PresetOut(BaseModel):
    id: str
    name: str
    duration_seconds: float
    categories: List[str]
    apps: List[str]
    websites: List[str]
    source_session_id: Optional[str]


class PresetStartRequest(BaseModel):
    goal: str = ""


# ── History ────────────────────────────────────────────────────────────────

class HistoryEntryOut(SessionOut):
    saved_as_preset: bool


# ── Catalog ────────────────────────────────────────────────────────────────

class CategoryOut(BaseModel):
    key: str
    name: str
    apps: List[str]
    websites: List[str]


class BrowserOut(BaseModel):
    key: str
    name: str
    scriptable: bool
    active_tab_only: bool
