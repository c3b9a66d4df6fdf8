"""
OS capability — the only seam where the core touches the host environment.

Implementations must bound every external call with a timeout and raise
CapabilityError (or any exception) on failure; enforcers treat that as
"no observation this cycle".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Protocol, Sequence

from .browsers import BrowserBackend

MatchPredicate = Callable[[str], bool]


class CapabilityError(RuntimeError):
    """An OS call failed, timed out or returned something unparseable."""


@dataclass(frozen=True)
class RunningApp:
    identifier: str
    is_foreground: bool = False
    is_hidden: bool = False


@dataclass(frozen=True)
class TabObservation:
    window: int
    tab: int            # 0 when only the active tab was inspected
    url: str


@dataclass
class TabOutcome:
    backend: str
    inspected: int = 0
    redirected: List[TabObservation] = field(default_factory=list)


class OSCapability(Protocol):

    def list_running_applications(self) -> List[RunningApp]: ...

    def suppress(self, identifier: str) -> bool: ...

    def restore(self, identifier: str) -> bool: ...

    def list_installed_applications(self) -> List[str]: ...

    def is_running(self, backend: BrowserBackend) -> bool: ...

    def redirect_tabs(
        self,
        backend: BrowserBackend,
        blocked_domains: Sequence[str],
        matches: MatchPredicate,
    ) -> TabOutcome: ...


class NullCapability:
    """Observes nothing and acts on nothing — used on unsupported platforms."""

    def list_running_applications(self) -> List[RunningApp]:
        return []

    def suppress(self, identifier: str) -> bool:
        return False

    def restore(self, identifier: str) -> bool:
        return False

    def list_installed_applications(self) -> List[str]:
        return []

    def is_running(self, backend: BrowserBackend) -> bool:
        return False

    def redirect_tabs(
        self,
        backend: BrowserBackend,
        blocked_domains: Sequence[str],
        matches: MatchPredicate,
    ) -> TabOutcome:
        return TabOutcome(backend=backend.key)
