"""Main game loop — asyncio-based fixed-rate tick.

Calls :meth:`World.step` once per ``1 / tick_rate`` seconds. The step
itself is synchronous; the loop only yields to the event loop between
steps, which is when connection tasks get to read and write.

A step that overruns its slot just delays the next one. The schedule
is re-anchored instead of firing a burst of catch-up steps.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from celestia.engine.world import World

log = logging.getLogger(__name__)


class GameLoop:
    """The central fixed-rate tick loop.

    Args:
        world: The simulation to advance.
        tick_rate: Steps per second; defaults to the world's configuration.
    """

    def __init__(self, world: World, tick_rate: float | None = None) -> None:
        self._world = world
        self._running = False
        self._step_interval = 1.0 / tick_rate if tick_rate else world.config.tick_interval

        # --- Debug / monitoring counters ---
        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.last_tick_dt: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self.overruns: int = 0
        self._tick_duration_sum: float = 0.0

    async def run(self) -> None:
        """Start the game loop. Runs until stop() is called."""
        self._running = True
        self.started_at = time.monotonic()
        last = self.started_at
        next_tick = self.started_at
        while self._running:
            now = time.monotonic()
            self.last_tick_dt = now - last
            last = now

            self.step()

            next_tick += self._step_interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                self.overruns += 1
                log.debug("Tick %d overran its slot by %.1f ms", self._world.tick_counter, -delay * 1000)
                next_tick = time.monotonic()
                delay = 0
            await asyncio.sleep(delay)
        log.info("Game loop stopped after %d ticks", self.tick_count)

    def step(self) -> str:
        """Run one world step and record its timing."""
        t0 = time.monotonic()
        frame = self._world.step()
        elapsed_ms = (time.monotonic() - t0) * 1000

        self.tick_count += 1
        self.last_tick_duration_ms = elapsed_ms
        self._tick_duration_sum += elapsed_ms
        self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count
        return frame

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def measured_rate(self) -> float:
        """Ticks per second over the last interval."""
        if self.last_tick_dt <= 0:
            return 0.0
        return 1.0 / self.last_tick_dt

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the game loop to stop."""
        self._running = False
