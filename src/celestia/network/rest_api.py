"""REST API — read-only FastAPI application for server status.

Game traffic stays on the WebSocket port; this app only exposes what an
operator or a rendering collaborator wants to look at.

Usage::

    from celestia.network.rest_api import create_app

    app = create_app(services)
    # Start with uvicorn as an asyncio task alongside the WS server
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from celestia.debug.monitor import collect_snapshot, collect_status
from celestia.network.rest_models import StatusResponse, WorldResponse
from celestia.util.constants import VERSION

if TYPE_CHECKING:
    from celestia.main import Services

log = logging.getLogger(__name__)


def create_app(services: "Services") -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    The ``services`` reference is captured by closure so every endpoint
    can read the world without global state.
    """
    app = FastAPI(title="Celestia Server", version=VERSION)

    # CORS: status pages may be opened from any origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    def _require_world() -> None:
        if services.world is None:
            raise HTTPException(status_code=503, detail="World not initialized")

    @app.get("/api/status", response_model=StatusResponse)
    async def get_status() -> dict[str, Any]:
        _require_world()
        return collect_status(services)

    @app.get("/api/world", response_model=WorldResponse)
    async def get_world() -> dict[str, Any]:
        _require_world()
        return services.world.snapshot().to_dict()

    @app.get("/api/debug")
    async def get_debug() -> dict[str, Any]:
        _require_world()
        return collect_snapshot(services)

    @app.get("/api/config")
    async def get_config() -> dict[str, Any]:
        if services.game_config is None:
            raise HTTPException(status_code=503, detail="Configuration not loaded")
        return services.game_config.to_dict()

    return app
