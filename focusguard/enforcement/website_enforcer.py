"""
Website Enforcer — approximates domain blocking by redirecting browser tabs.

Only browsers that are already running are inspected (polling never launches
one). A tab is redirected when its host equals a blocked domain or is a
subdomain of it. Unsupported backends are skipped, so coverage is the union
of whatever backends are scriptable on this machine.

No lock is held while a browser is scripted; each tab is checked against the
enforced set as it stands at that moment.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Sequence, Set

from ..policy.targets import TargetKind, domain_matches, normalize_domain
from .app_enforcer import ExemptCheck
from .browsers import BrowserBackend, supported_backends
from .capability import OSCapability, TabObservation
from .events import WEBSITE_BLOCKED, EventBus

logger = logging.getLogger(__name__)


class WebsiteEnforcer:

    def __init__(
        self,
        capability: OSCapability,
        bus: Optional[EventBus] = None,
        is_exempt: Optional[ExemptCheck] = None,
        backends: Optional[Sequence[BrowserBackend]] = None,
    ):
        self._capability = capability
        self._bus = bus
        self._is_exempt = is_exempt
        self._backends = list(backends) if backends is not None else supported_backends()
        self._desired: Set[str] = set()
        self._lock = threading.RLock()
        self._poll_guard = threading.Lock()
        self._failing: Set[str] = set()

    # ------------------------------------------------------------------
    # Desired set
    # ------------------------------------------------------------------

    def set_desired(self, domains: Iterable[str]) -> None:
        desired = {d for d in (normalize_domain(x) for x in domains) if d}
        with self._lock:
            self._desired = desired

    def block(self, domain: str) -> bool:
        d = normalize_domain(domain)
        if not d:
            return False
        with self._lock:
            self._desired.add(d)
        return True

    def unblock(self, domain: str) -> bool:
        d = normalize_domain(domain)
        with self._lock:
            if d not in self._desired:
                return False
            self._desired.discard(d)
        return True

    def unblock_all(self) -> None:
        # redirected tabs are not restored: the page was blanked, not hidden
        with self._lock:
            self._desired.clear()

    def is_blocked(self, domain: str) -> bool:
        with self._lock:
            return normalize_domain(domain) in self._desired

    def is_domain_blocked(self, url: str) -> bool:
        """True if *url*'s host falls under any enforced, non-exempt domain."""
        return any(domain_matches(url, d) for d in self._enforced())

    @property
    def blocked_websites(self) -> List[str]:
        with self._lock:
            return sorted(self._desired)

    @property
    def is_polling(self) -> bool:
        with self._lock:
            return bool(self._desired)

    @property
    def backends(self) -> List[BrowserBackend]:
        return list(self._backends)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def poll(self) -> List[TabObservation]:
        """One reconciliation cycle; returns the tabs redirected this cycle."""
        if not self._poll_guard.acquire(blocking=False):
            return []
        try:
            redirected: List[TabObservation] = []
            for backend in self._backends:
                redirected.extend(self._poll_backend(backend))
            return redirected
        finally:
            self._poll_guard.release()

    def _poll_backend(self, backend: BrowserBackend) -> List[TabObservation]:
        if not backend.scriptable:
            return []
        try:
            if not self._capability.is_running(backend):
                return []
        except Exception as exc:
            self._observation_failed(backend, "running check", exc)
            return []

        blocked = self._enforced()
        if not blocked:
            return []

        def matches(url: str) -> bool:
            # consults the live set: a domain unblocked mid-scan is spared
            return self.is_domain_blocked(url)

        try:
            outcome = self._capability.redirect_tabs(backend, blocked, matches)
        except Exception as exc:
            self._observation_failed(backend, "tab scan", exc)
            return []
        self._failing.discard(backend.key)

        for obs in outcome.redirected:
            host = normalize_domain(obs.url)
            logger.info("Redirected %s tab on blocked site %r", backend.name, host)
            if self._bus is not None:
                domain = next((d for d in blocked if domain_matches(host, d)), host)
                self._bus.publish_threadsafe(WEBSITE_BLOCKED, target=domain, kind=TargetKind.WEBSITE)
        return list(outcome.redirected)

    def _enforced(self) -> List[str]:
        with self._lock:
            domains = sorted(self._desired)
        if self._is_exempt is None:
            return domains
        return [d for d in domains if not self._is_exempt(d, TargetKind.WEBSITE)]

    def _observation_failed(self, backend: BrowserBackend, what: str, exc: Exception) -> None:
        if backend.key in self._failing:
            logger.debug("%s %s failed again: %s", backend.name, what, exc)
        else:
            logger.warning("%s %s failed, retrying next cycle: %s", backend.name, what, exc)
            self._failing.add(backend.key)
