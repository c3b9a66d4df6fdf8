"""
JSON Store — durable current session, presets and history under data_dir.

Every call degrades to "nothing persisted / nothing loaded" on failure; the
caller's in-memory state stays authoritative and the next mutation retries.
Writes go through a temp file + rename so a crash never leaves half a file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from ..session.models import Preset, Session

logger = logging.getLogger(__name__)

CURRENT_FILE = "current_session.json"
PRESETS_FILE = "presets.json"
HISTORY_FILE = "history.json"


class JsonStore:

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    # ------------------------------------------------------------------
    # Current session
    # ------------------------------------------------------------------

    def load_current_session(self) -> Optional[Session]:
        data = self._read(CURRENT_FILE)
        if not isinstance(data, dict):
            return None
        try:
            return Session.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable current session: %s", exc)
            return None

    def save_current_session(self, session: Optional[Session]) -> bool:
        if session is None:
            return self._remove(CURRENT_FILE)
        return self._write(CURRENT_FILE, session.to_dict())

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    def load_presets(self) -> Optional[List[Preset]]:
        """None when nothing was ever saved, so callers can seed defaults."""
        data = self._read(PRESETS_FILE)
        if not isinstance(data, list):
            return None
        return self._parse_list(data, Preset.from_dict, "preset")

    def save_presets(self, presets: List[Preset]) -> bool:
        return self._write(PRESETS_FILE, [p.to_dict() for p in presets])

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def load_history(self) -> List[Session]:
        data = self._read(HISTORY_FILE)
        if not isinstance(data, list):
            return []
        return self._parse_list(data, Session.from_dict, "history entry")

    def save_history(self, history: List[Session]) -> bool:
        return self._write(HISTORY_FILE, [s.to_dict() for s in history])

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_list(data: list, parse, label: str) -> list:
        items = []
        for raw in data:
            try:
                items.append(parse(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable %s: %s", label, exc)
        return items

    def _read(self, name: str) -> Any:
        path = self.data_dir / name
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def _write(self, name: str, payload: Any) -> bool:
        path = self.data_dir / name
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2))
            os.replace(tmp, path)
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not write %s: %s", path, exc)
            return False

    def _remove(self, name: str) -> bool:
        try:
            (self.data_dir / name).unlink(missing_ok=True)
            return True
        except OSError as exc:
            logger.warning("Could not remove %s: %s", self.data_dir / name, exc)
            return False
