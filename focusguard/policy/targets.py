"""
Block targets — identifier normalization and the domain match rule.

Every app name and website domain passes through these functions before it is
stored, compared or sent to the OS layer. Malformed input normalizes to ""
and is dropped at the insertion boundary.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List
from urllib.parse import urlsplit


class TargetKind(str, Enum):
    APP = "app"
    WEBSITE = "website"


_LABEL = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def _strip_www(host: str) -> str:
    # repeated so that normalize(normalize(x)) == normalize(x)
    while host.startswith("www."):
        host = host[4:]
    return host


def normalize_domain(value: str) -> str:
    """
    Reduce a URL or domain to its bare, lowercase host without a leading www.

        >>> normalize_domain("https://WWW.Example.com/path?q=1")
        'example.com'
    """
    if not isinstance(value, str):
        return ""
    trimmed = value.strip()
    if not trimmed or _CONTROL.search(trimmed):
        return ""

    candidate = trimmed if "://" in trimmed else f"https://{trimmed}"
    try:
        host = urlsplit(candidate).hostname or ""
    except ValueError:
        return ""

    host = _strip_www(host.lower().rstrip("."))
    if not host or len(host) > 253:
        return ""
    if not all(_LABEL.match(label) for label in host.split(".")):
        return ""
    return host


def normalize_app_name(value: str) -> str:
    """Trim an application identifier and drop a trailing '.app' bundle suffix."""
    if not isinstance(value, str):
        return ""
    name = " ".join(value.split())
    if not name or _CONTROL.search(name):
        return ""
    while name.lower().endswith(".app"):
        name = name[:-4].rstrip()
    return name


def normalize(value: str, kind: TargetKind) -> str:
    if kind == TargetKind.WEBSITE:
        return normalize_domain(value)
    return normalize_app_name(value)


def normalize_all(values: Iterable[str], kind: TargetKind) -> List[str]:
    """Normalize, drop invalid entries and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for v in values:
        n = normalize(v, kind)
        if n:
            seen.setdefault(n, None)
    return list(seen)


def domain_matches(host: str, domain: str) -> bool:
    """
    True iff *host* is *domain* or one of its subdomains.

    Comparison is on hosts only, never on the whole URL, so
    "notyoutube.com/youtube.com-ad" does not match "youtube.com".
    """
    h = normalize_domain(host)
    d = normalize_domain(domain)
    if not h or not d:
        return False
    return h == d or h.endswith("." + d)
