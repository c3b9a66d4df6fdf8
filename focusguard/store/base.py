"""
Store interface consumed by the session layer.

JsonStore is the shipped implementation; tests and embedders may pass any
object with these methods.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from ..session.models import Preset, Session


class Store(Protocol):

    def load_current_session(self) -> Optional[Session]: ...

    def save_current_session(self, session: Optional[Session]) -> bool: ...

    def load_presets(self) -> Optional[List[Preset]]: ...

    def save_presets(self, presets: List[Preset]) -> bool: ...

    def load_history(self) -> List[Session]: ...

    def save_history(self, history: List[Session]) -> bool: ...
