"""
Desired Policy — the set of targets that should be blocked right now.

    (explicit lists ∪ category defaults) \\ snoozed targets

Recomputed from scratch whenever the session, its categories or the snooze
set changes; there is no incremental state to drift.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List

from .categories import BlockCategory
from .targets import TargetKind, normalize_all

SnoozeCheck = Callable[[str, TargetKind], bool]


@dataclass(frozen=True)
class DesiredPolicy:
    apps: FrozenSet[str] = field(default_factory=frozenset)
    websites: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.apps and not self.websites

    def to_dict(self) -> dict:
        return {"apps": sorted(self.apps), "websites": sorted(self.websites)}


EMPTY_POLICY = DesiredPolicy()


def union_targets(
    explicit_apps: Iterable[str],
    explicit_websites: Iterable[str],
    categories: Iterable[BlockCategory],
) -> tuple[List[str], List[str]]:
    """Merge explicit lists with category defaults, normalized and de-duplicated."""
    apps = list(explicit_apps)
    websites = list(explicit_websites)
    for category in categories:
        apps.extend(category.default_apps)
        websites.extend(category.default_websites)
    return (
        normalize_all(apps, TargetKind.APP),
        normalize_all(websites, TargetKind.WEBSITE),
    )


def compute_desired_policy(
    blocked_apps: Iterable[str],
    blocked_websites: Iterable[str],
    categories: Iterable[BlockCategory],
    is_snoozed: SnoozeCheck,
) -> DesiredPolicy:
    apps, websites = union_targets(blocked_apps, blocked_websites, categories)
    return DesiredPolicy(
        apps=frozenset(a for a in apps if not is_snoozed(a, TargetKind.APP)),
        websites=frozenset(w for w in websites if not is_snoozed(w, TargetKind.WEBSITE)),
    )
