"""
Central configuration for the focusguard engine.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766

    # Timers
    session_tick_s: float = 1.0              # session countdown resolution
    enforcement_interval_s: float = 2.0      # app + website reconciliation poll
    external_call_timeout_s: float = 3.0     # per osascript / OS call
    poll_timeout_s: float = 6.0              # whole poll cycle, awaited by the loop

    # Session defaults
    default_snooze_s: int = 180
    extend_step_s: int = 300
    notify_cooldown_s: int = 30

    # Storage
    data_dir: Path = field(default_factory=lambda: Path.home() / ".focusguard")

    # Logging
    log_level: str = "info"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir).expanduser()

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (FG_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"FG_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir).expanduser()
        return cfg


# Module-level singleton
config = Config.load()
