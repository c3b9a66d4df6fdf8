"""
Session data model — focus sessions, presets and snooze entries.

Timestamps are Unix epoch floats (time.time()); durations are seconds.
to_dict()/from_dict() are lossless for every field so the Store can round-trip
records without knowing their shape.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from ..policy.categories import BlockCategory, parse_categories
from ..policy.targets import TargetKind

DEFAULT_DURATION_S = 1500.0   # 25 min


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Session:
    id: str = field(default_factory=_new_id)
    goal: str = ""
    duration: float = DEFAULT_DURATION_S
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    blocked_apps: List[str] = field(default_factory=list)
    blocked_websites: List[str] = field(default_factory=list)
    block_categories: List[BlockCategory] = field(default_factory=list)
    active: bool = False
    paused: bool = False
    paused_at: Optional[float] = None
    total_paused_time: float = 0.0

    # ------------------------------------------------------------------
    # Derived timing
    # ------------------------------------------------------------------

    def elapsed(self, now: float) -> float:
        """Active (unpaused) seconds since start."""
        if self.start_time is None:
            return 0.0
        paused = self.total_paused_time
        if self.paused and self.paused_at is not None:
            paused += now - self.paused_at
        return max(0.0, now - self.start_time - paused)

    def remaining(self, now: float) -> float:
        if not self.active or self.start_time is None:
            return self.duration
        return max(0.0, self.duration - self.elapsed(now))

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 0.0
        return min(1.0, 1.0 - self.remaining(now) / self.duration)

    def is_completed(self, now: float) -> bool:
        return self.active and self.remaining(now) <= 0

    def copy(self) -> "Session":
        return replace(
            self,
            blocked_apps=list(self.blocked_apps),
            blocked_websites=list(self.blocked_websites),
            block_categories=list(self.block_categories),
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "goal": self.goal,
            "duration": self.duration,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "blocked_apps": list(self.blocked_apps),
            "blocked_websites": list(self.blocked_websites),
            "block_categories": [c.value for c in self.block_categories],
            "active": self.active,
            "paused": self.paused,
            "paused_at": self.paused_at,
            "total_paused_time": self.total_paused_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            id=str(data["id"]),
            goal=str(data.get("goal", "")),
            duration=float(data.get("duration", DEFAULT_DURATION_S)),
            start_time=_opt_float(data.get("start_time")),
            end_time=_opt_float(data.get("end_time")),
            blocked_apps=[str(a) for a in data.get("blocked_apps", [])],
            blocked_websites=[str(w) for w in data.get("blocked_websites", [])],
            block_categories=parse_categories(data.get("block_categories", [])),
            active=bool(data.get("active", False)),
            paused=bool(data.get("paused", False)),
            paused_at=_opt_float(data.get("paused_at")),
            total_paused_time=float(data.get("total_paused_time", 0.0)),
        )


def format_remaining(seconds: float) -> str:
    """'MM:SS' below an hour, 'H:MM:SS' above."""
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class Preset:
    name: str
    duration: float
    block_categories: tuple = ()
    custom_apps: tuple = ()
    custom_websites: tuple = ()
    source_session_id: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "block_categories": [c.value for c in self.block_categories],
            "custom_apps": list(self.custom_apps),
            "custom_websites": list(self.custom_websites),
            "source_session_id": self.source_session_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preset":
        source = data.get("source_session_id")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            duration=float(data["duration"]),
            block_categories=tuple(parse_categories(data.get("block_categories", []))),
            custom_apps=tuple(str(a) for a in data.get("custom_apps", [])),
            custom_websites=tuple(str(w) for w in data.get("custom_websites", [])),
            source_session_id=str(source) if source is not None else None,
        )


def default_presets() -> List[Preset]:
    return [
        Preset(
            name="Deep Work",
            duration=7200,
            block_categories=(BlockCategory.SOCIAL_MEDIA, BlockCategory.SHOPPING,
                              BlockCategory.ENTERTAINMENT, BlockCategory.MESSAGING),
        ),
        Preset(
            name="Quick Focus",
            duration=1500,
            block_categories=(BlockCategory.SOCIAL_MEDIA, BlockCategory.ENTERTAINMENT),
        ),
        Preset(
            name="Study Session",
            duration=3600,
            block_categories=(BlockCategory.SOCIAL_MEDIA, BlockCategory.GAMING,
                              BlockCategory.ENTERTAINMENT),
        ),
        Preset(
            name="Meeting Mode",
            duration=1800,
            block_categories=(BlockCategory.SOCIAL_MEDIA, BlockCategory.SHOPPING,
                              BlockCategory.GAMING),
        ),
    ]


@dataclass(frozen=True)
class SnoozeEntry:
    target: str
    kind: TargetKind
    expires_at: float

    def is_active(self, now: float) -> bool:
        return now < self.expires_at


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)
