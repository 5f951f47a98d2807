"""Game configuration — loads deployment settings from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever settings are needed. The values
are fixed for the lifetime of the process.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass(frozen=True)
class GameConfig:
    """All deployment settings.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the server can start even without the file.
    """

    # -- World -------------------------------------------------------
    world_width: float = 800.0
    world_height: float = 800.0
    tick_rate: int = 30
    max_clients: int = 10

    # -- Ships -------------------------------------------------------
    shield_color: float = 150.0
    air_effect: bool = True

    # -- Network -----------------------------------------------------
    host: str = "0.0.0.0"
    ws_port: int = 5204
    ws_ping_interval: int = 20
    ws_ping_timeout: int = 20
    ws_max_message_size: int = 4096
    outbound_queue_size: int = 8
    rest_enabled: bool = True
    rest_port: int = 8080

    # -- Logging -----------------------------------------------------
    log_level: str = "INFO"

    @property
    def tick_interval(self) -> float:
        """Seconds between two simulation steps."""
        return 1.0 / self.tick_rate

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH, **overrides: Any) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults and unknown keys are
    ignored with a warning.  If the file does not exist, a warning is
    logged and pure defaults are returned.  Keyword ``overrides`` (for
    example from the command line) win over the file.
    """
    p = Path(path)
    raw: dict[str, Any] = {}
    if not p.exists():
        log.warning("Game config not found at %s — using defaults", p)
    else:
        with p.open() as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{p}: expected a mapping at the top level, got {type(raw).__name__}")
        log.info("Loaded game config from %s (%d keys)", p, len(raw))

    unknown = sorted(k for k in raw if k not in GameConfig.__dataclass_fields__)
    if unknown:
        log.warning("Ignoring unknown config keys: %s", ", ".join(unknown))

    values = {k: v for k, v in raw.items() if k in GameConfig.__dataclass_fields__}
    values.update({k: v for k, v in overrides.items() if v is not None})
    cfg = GameConfig(**values)

    if cfg.tick_rate <= 0:
        raise ValueError(f"tick_rate must be positive, got {cfg.tick_rate}")
    if cfg.max_clients < 1:
        raise ValueError(f"max_clients must be at least 1, got {cfg.max_clients}")
    return cfg
