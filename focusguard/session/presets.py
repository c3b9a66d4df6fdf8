"""
Preset Library — saved session templates.

Presets are immutable once created; "editing" replaces by id. A preset saved
from a history session remembers that session's id so saving it twice
returns the existing preset instead of a duplicate.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..policy.desired import union_targets
from ..policy.targets import TargetKind, normalize_all
from ..store.base import Store
from .models import Preset, Session, default_presets

logger = logging.getLogger(__name__)


class PresetLibrary:

    def __init__(self, store: Optional[Store] = None):
        self._store = store
        loaded = store.load_presets() if store is not None else None
        self._presets: List[Preset] = loaded if loaded is not None else default_presets()

    def all(self) -> List[Preset]:
        return list(self._presets)

    def get(self, preset_id: str) -> Optional[Preset]:
        return next((p for p in self._presets if p.id == preset_id), None)

    def save(self, preset: Preset) -> Preset:
        preset = Preset(
            id=preset.id,
            name=preset.name.strip() or "Untitled",
            duration=preset.duration,
            block_categories=tuple(dict.fromkeys(preset.block_categories)),
            custom_apps=tuple(normalize_all(preset.custom_apps, TargetKind.APP)),
            custom_websites=tuple(normalize_all(preset.custom_websites, TargetKind.WEBSITE)),
            source_session_id=preset.source_session_id,
        )
        for i, existing in enumerate(self._presets):
            if existing.id == preset.id:
                self._presets[i] = preset
                break
        else:
            self._presets.append(preset)
        self._persist()
        return preset

    def delete(self, preset_id: str) -> bool:
        before = len(self._presets)
        self._presets = [p for p in self._presets if p.id != preset_id]
        if len(self._presets) == before:
            return False
        self._persist()
        return True

    # ------------------------------------------------------------------
    # Session <-> preset
    # ------------------------------------------------------------------

    def is_session_saved(self, session_id: str) -> bool:
        return any(p.source_session_id == session_id for p in self._presets)

    def save_from_session(self, session: Session, name: str = "") -> Preset:
        existing = next(
            (p for p in self._presets if p.source_session_id == session.id), None
        )
        if existing is not None:
            return existing

        # keep only what the categories would not bring back on their own
        category_apps, category_sites = union_targets([], [], session.block_categories)
        apps = [a for a in normalize_all(session.blocked_apps, TargetKind.APP)
                if a not in category_apps]
        sites = [w for w in normalize_all(session.blocked_websites, TargetKind.WEBSITE)
                 if w not in category_sites]
        return self.save(Preset(
            name=name or session.goal or "Focus Session",
            duration=session.duration,
            block_categories=tuple(session.block_categories),
            custom_apps=tuple(apps),
            custom_websites=tuple(sites),
            source_session_id=session.id,
        ))

    @staticmethod
    def create_session(preset: Preset, goal: str = "") -> Session:
        apps, websites = union_targets(
            preset.custom_apps, preset.custom_websites, preset.block_categories
        )
        return Session(
            goal=goal.strip() or preset.name,
            duration=preset.duration,
            blocked_apps=apps,
            blocked_websites=websites,
            block_categories=list(preset.block_categories),
        )

    def _persist(self) -> None:
        if self._store is not None:
            self._store.save_presets(list(self._presets))
