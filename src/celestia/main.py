"""Game server entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (config/game.yaml plus command-line overrides)
2. Create the world and engine services
3. Wire the event bus
4. Start network servers (WebSocket game port, REST status API)
5. Start the fixed-rate game loop

Usage:
    python -m celestia.main [--config PATH] [--port N]
    # or via entry point:
    celestia-server
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Any, Optional

from celestia.engine.game_loop import GameLoop
from celestia.engine.statistics import StatisticsService
from celestia.engine.world import World
from celestia.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, GameConfig, load_game_config
from celestia.network.server import Server
from celestia.util.constants import VERSION
from celestia.util.events import EventBus

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all engine services."""

    game_config: Optional[GameConfig] = None
    event_bus: Optional[EventBus] = None
    world: Optional[World] = None
    statistics: Optional[StatisticsService] = None
    game_loop: Optional[GameLoop] = None
    server: Optional[Server] = None
    rest_server: Any = None


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_path: str = DEFAULT_GAME_CONFIG_PATH,
                       port: Optional[int] = None) -> GameConfig:
    """Load the game configuration, letting ``port`` override ``ws_port``."""
    log.info("Loading configuration …")
    config = load_game_config(config_path, ws_port=port)
    log.info("  world:        %gx%g at %d ticks/s, %d clients max",
             config.world_width, config.world_height, config.tick_rate, config.max_clients)
    return config


# ===================================================================
# 2. Create engine services
# ===================================================================


def create_services(config: GameConfig) -> Services:
    """Instantiate the world, loop and network server.

    Args:
        config: Loaded game configuration.

    Returns:
        Populated :class:`Services` container.
    """
    log.info("Creating services …")

    event_bus = EventBus()
    world = World(config, event_bus)
    statistics = StatisticsService()
    game_loop = GameLoop(world)
    server = Server(
        world,
        host=config.host,
        port=config.ws_port,
        ping_interval=config.ws_ping_interval,
        ping_timeout=config.ws_ping_timeout,
        max_size=config.ws_max_message_size,
        outbound_queue_size=config.outbound_queue_size,
    )

    log.info("  all services created")
    return Services(
        game_config=config,
        event_bus=event_bus,
        world=world,
        statistics=statistics,
        game_loop=game_loop,
        server=server,
    )


# ===================================================================
# 3. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register event handlers that connect services via the EventBus."""
    log.info("Wiring event handlers …")
    services.statistics.attach(services.event_bus)
    log.info("  event handlers registered")


# ===================================================================
# 4. Start network servers
# ===================================================================


async def start_network(services: Services) -> None:
    """Start the WebSocket server and, if enabled, the REST status API.

    A failure to bind the game port propagates and aborts startup.
    """
    log.info("Starting network servers …")
    await services.server.start()

    config = services.game_config
    if not config.rest_enabled:
        log.info("  REST API disabled")
        return

    from celestia.network.rest_api import create_app
    import uvicorn

    rest_app = create_app(services)
    uv_config = uvicorn.Config(
        rest_app,
        host=config.host,
        port=config.rest_port,
        log_level=config.log_level.lower(),
        access_log=False,
    )
    rest_server = uvicorn.Server(uv_config)
    services.rest_server = rest_server
    # Start as background task (non-blocking)
    asyncio.create_task(rest_server.serve())
    log.info("  REST API listening on http://%s:%d", config.host, config.rest_port)


# ===================================================================
# 5. Start game loop
# ===================================================================


async def start_game_loop(services: Services) -> None:
    """Run the game loop until a shutdown signal, then clean up."""
    log.info("Starting game loop …")
    loop = asyncio.get_running_loop()

    # Graceful shutdown on SIGINT / SIGTERM
    def _request_shutdown() -> None:
        log.info("Shutdown signal received — stopping …")
        services.game_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    log.info("  game loop running (%d ticks/s)", services.world.tick_rate)
    await services.game_loop.run()

    # --- Cleanup after loop exits ---
    log.info("Shutting down …")
    if services.server is not None:
        await services.server.stop()
    if services.rest_server is not None:
        services.rest_server.should_exit = True
        log.info("  REST API server stopped")
    if services.statistics is not None:
        log.info("  statistics: %s", services.statistics.summary())
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str = DEFAULT_GAME_CONFIG_PATH, port: Optional[int] = None) -> None:
    """Initialize and run all server components."""
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    log.info("=== Celestia Server %s starting ===", VERSION)

    # 1. Load configuration
    config = load_configuration(config_path, port)
    logging.getLogger().setLevel(config.log_level.upper())

    # 2. Create services
    services = create_services(config)

    # 3. Wire event handlers
    wire_events(services)

    # 4. Start network
    await start_network(services)

    # 5. Start game loop (blocks until shutdown)
    await start_game_loop(services)


def _option(argv: list[str], name: str) -> Optional[str]:
    """Value following ``name`` in ``argv``, or None if absent."""
    if name not in argv:
        return None
    idx = argv.index(name)
    if idx + 1 >= len(argv):
        print(f"Error: {name} requires an argument", file=sys.stderr)
        sys.exit(1)
    return argv[idx + 1]


def main() -> None:
    """Entry point for the game server.

    Supports command-line arguments:
        --config <path>  Game config YAML (default: config/game.yaml)
        --port <n>       WebSocket port, overrides ws_port from the file
    """
    argv = sys.argv[1:]
    config_path = _option(argv, "--config") or DEFAULT_GAME_CONFIG_PATH
    port: Optional[int] = None
    raw_port = _option(argv, "--port")
    if raw_port is not None:
        try:
            port = int(raw_port)
        except ValueError:
            print(f"Error: --port expects an integer, got {raw_port!r}", file=sys.stderr)
            sys.exit(1)

    asyncio.run(_start(config_path=config_path, port=port))


if __name__ == "__main__":
    main()
