"""Pydantic response models for the status REST API.

These define the shapes returned over HTTP. They are kept apart from
the wire codec, which only ever speaks the compact text frame format.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


# ===================================================================
# Status
# ===================================================================


class ClientInfo(BaseModel):
    client_id: int
    name: str
    shield_strength: int = 0


class StatusResponse(BaseModel):
    version: str
    uptime_s: float = 0.0
    tick: int = 0
    tick_rate: int = 0
    measured_rate: float = 0.0
    last_tick_work_ms: float = 0.0
    avg_tick_work_ms: float = 0.0
    overruns: int = 0
    max_clients: int = 0
    clients: List[ClientInfo] = Field(default_factory=list)
    pending: int = 0
    ships: int = 0
    shots: int = 0
    statistics: Dict[str, Any] = Field(default_factory=dict)


# ===================================================================
# World snapshot
# ===================================================================


class ShipModel(BaseModel):
    client_id: int
    name: str
    x: int
    y: int
    angle: float
    shield_color: float
    shield_strength: int
    points: List[Tuple[float, float]] = Field(default_factory=list)
    shot_id: Optional[int] = None


class ShotModel(BaseModel):
    shot_id: int
    x: int
    y: int
    angle: float
    spawn_tick: int
    owner_id: Optional[int] = None


class WorldResponse(BaseModel):
    tick: int
    width: float
    height: float
    ships: List[ShipModel] = Field(default_factory=list)
    shots: List[ShotModel] = Field(default_factory=list)
