"""
Block categories — declarative default lists.

Each category maps to the app names and website domains it blocks by default.
Pure lookup table; extend by adding an entry to _DEFAULTS.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple


class BlockCategory(str, Enum):
    SOCIAL_MEDIA = "social_media"
    SHOPPING = "shopping"
    NEWS = "news"
    ENTERTAINMENT = "entertainment"
    GAMING = "gaming"
    MESSAGING = "messaging"

    @property
    def display_name(self) -> str:
        return _DEFAULTS[self].name

    @property
    def default_apps(self) -> Tuple[str, ...]:
        return _DEFAULTS[self].apps

    @property
    def default_websites(self) -> Tuple[str, ...]:
        return _DEFAULTS[self].websites


@dataclass(frozen=True)
class CategoryDefaults:
    name: str
    apps: Tuple[str, ...]
    websites: Tuple[str, ...]


_DEFAULTS: Dict[BlockCategory, CategoryDefaults] = {
    BlockCategory.SOCIAL_MEDIA: CategoryDefaults(
        name="Social Media",
        apps=("Twitter", "Facebook", "Instagram", "TikTok", "LinkedIn", "Reddit"),
        websites=("twitter.com", "facebook.com", "instagram.com", "tiktok.com",
                  "linkedin.com", "reddit.com", "x.com"),
    ),
    BlockCategory.SHOPPING: CategoryDefaults(
        name="Shopping",
        apps=("Amazon", "eBay", "Etsy"),
        websites=("amazon.com", "ebay.com", "etsy.com", "alibaba.com"),
    ),
    BlockCategory.NEWS: CategoryDefaults(
        name="News",
        # browsers listed here are narrowed by domain in practice
        apps=("News", "Safari", "Arc"),
        websites=("cnn.com", "bbc.com", "nytimes.com", "theguardian.com", "reuters.com"),
    ),
    BlockCategory.ENTERTAINMENT: CategoryDefaults(
        name="Entertainment",
        apps=("YouTube", "Netflix", "Spotify", "Apple TV"),
        websites=("youtube.com", "netflix.com", "hulu.com", "twitch.tv", "spotify.com"),
    ),
    BlockCategory.GAMING: CategoryDefaults(
        name="Gaming",
        apps=("Steam", "Discord", "Epic Games"),
        websites=("steampowered.com", "epicgames.com", "twitch.tv"),
    ),
    BlockCategory.MESSAGING: CategoryDefaults(
        name="Messaging",
        apps=("Slack", "Discord", "WhatsApp", "Telegram", "Messages"),
        websites=("slack.com", "discord.com", "web.whatsapp.com", "web.telegram.org"),
    ),
}


def parse_categories(values: Iterable[str]) -> List[BlockCategory]:
    """Map raw strings to categories, skipping unknown values and duplicates."""
    out: List[BlockCategory] = []
    for v in values:
        try:
            cat = BlockCategory(v)
        except ValueError:
            continue
        if cat not in out:
            out.append(cat)
    return out
