"""State snapshot collector — gathers runtime state for the status API.

Pulls data from all services into plain dicts that can be serialised
to JSON. ``collect_status`` is the compact operator view,
``collect_snapshot`` the nested debug view.
"""

from __future__ import annotations

import os
import time
from typing import Any, TYPE_CHECKING

from celestia.util.constants import VERSION

if TYPE_CHECKING:
    from celestia.main import Services


def collect_status(services: Services) -> dict[str, Any]:
    """Flat status summary, shaped like ``StatusResponse``."""
    world = services.world
    gl = services.game_loop
    stats = services.statistics
    return {
        "version": VERSION,
        "uptime_s": round(gl.uptime_seconds, 1) if gl else 0.0,
        "tick": world.tick_counter,
        "tick_rate": world.tick_rate,
        "measured_rate": round(gl.measured_rate, 2) if gl else 0.0,
        "last_tick_work_ms": round(gl.last_tick_duration_ms, 3) if gl else 0.0,
        "avg_tick_work_ms": round(gl.avg_tick_duration_ms, 3) if gl else 0.0,
        "overruns": gl.overruns if gl else 0,
        "max_clients": world.max_clients,
        "clients": _clients(services),
        "pending": world.pending_count,
        "ships": len(world.ships),
        "shots": len(world.shots),
        "statistics": stats.summary() if stats else {},
    }


def collect_snapshot(services: Services) -> dict[str, Any]:
    """Build a JSON-serialisable snapshot of the entire server state.

    Args:
        services: The Services container from main.py.

    Returns:
        Nested dict with all relevant runtime data.
    """
    snap: dict[str, Any] = {}

    # -- Server info ---
    snap["server"] = _server_info(services)

    # -- Game loop ---
    snap["game_loop"] = _game_loop_info(services)

    # -- Event bus ---
    snap["event_bus"] = _event_bus_info(services)

    # -- World ---
    snap["world"] = _world_info(services)

    # -- Process ---
    snap["process"] = _process_info()

    return snap


# -------------------------------------------------------------------
# Section collectors
# -------------------------------------------------------------------


def _clients(services: Services) -> list[dict[str, Any]]:
    world = services.world
    return [
        {"client_id": cid, "name": session.name,
         "shield_strength": world.ships[cid].shield_strength}
        for cid, session in world.sessions.items()
    ]


def _server_info(services: Services) -> dict[str, Any]:
    srv = services.server
    if srv is None:
        return {"status": "not created"}
    return {
        "host": srv.host,
        "port": srv.port,
        "connections": srv.connection_count,
        "connected_ids": srv.connected_ids,
    }


def _game_loop_info(services: Services) -> dict[str, Any]:
    gl = services.game_loop
    if gl is None:
        return {"status": "not created"}
    return {
        "running": gl.is_running,
        "tick_count": gl.tick_count,
        "uptime_s": round(gl.uptime_seconds, 1),
        "uptime_fmt": _fmt_duration(gl.uptime_seconds),
        "last_tick_dt_ms": round(gl.last_tick_dt * 1000, 2),
        "last_tick_work_ms": round(gl.last_tick_duration_ms, 3),
        "avg_tick_work_ms": round(gl.avg_tick_duration_ms, 3),
        "overruns": gl.overruns,
    }


def _event_bus_info(services: Services) -> dict[str, Any]:
    bus = services.event_bus
    if bus is None:
        return {"status": "not created"}
    handlers = bus._handlers
    return {
        "registered_events": len(handlers),
        "events": {et.__name__: len(hl) for et, hl in handlers.items()},
        "total_handlers": sum(len(hl) for hl in handlers.values()),
    }


def _world_info(services: Services) -> dict[str, Any]:
    world = services.world
    if world is None:
        return {"status": "not created"}
    sessions = {
        str(cid): {
            "name": s.name,
            "state": s.state.value,
            "dropped_inputs": s.dropped_inputs,
            "dropped_frames": s.dropped_frames,
        }
        for cid, s in world.sessions.items()
    }
    return {
        "tick": world.tick_counter,
        "ships": len(world.ships),
        "shots": len(world.shots),
        "pending": world.pending_count,
        "sessions": sessions,
        "last_frame_bytes": len(world.last_frame),
    }


def _process_info() -> dict[str, Any]:
    try:
        import resource
        usage = resource.getrusage(resource.RUSAGE_SELF)
        mem_mb = usage.ru_maxrss / 1024  # Linux: kilobytes → MB
    except ImportError:
        mem_mb = 0.0
    return {
        "pid": os.getpid(),
        "memory_mb": round(mem_mb, 1),
        "time": time.strftime("%Y-%m-%d %H:%M:%S"),
    }


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def _fmt_duration(seconds: float) -> str:
    """Format seconds into 'Xh Ym Zs'."""
    s = int(seconds)
    h, s = divmod(s, 3600)
    m, s = divmod(s, 60)
    if h:
        return f"{h}h {m:02d}m {s:02d}s"
    if m:
        return f"{m}m {s:02d}s"
    return f"{s}s"
