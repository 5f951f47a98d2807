"""Tests for the fixed-rate game loop."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import MagicMock

import pytest

from celestia.engine.game_loop import GameLoop
from celestia.engine.world import World
from celestia.loaders.game_config_loader import GameConfig


class TestStep:
    def test_step_advances_world(self):
        world = World(GameConfig())
        loop = GameLoop(world)
        frame = loop.step()
        assert frame == "//false"
        assert world.tick_counter == 1
        assert loop.tick_count == 1
        assert loop.avg_tick_duration_ms >= 0

    def test_interval_from_config(self):
        assert GameLoop(World(GameConfig(tick_rate=50)))._step_interval == pytest.approx(0.02)
        assert GameLoop(World(GameConfig()), tick_rate=10)._step_interval == pytest.approx(0.1)

    def test_idle_properties(self):
        loop = GameLoop(World(GameConfig()))
        assert loop.uptime_seconds == 0.0
        assert loop.measured_rate == 0.0
        assert not loop.is_running


class TestRun:
    @pytest.mark.asyncio
    async def test_runs_until_stopped(self):
        world = World(GameConfig(tick_rate=100))
        loop = GameLoop(world)
        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        assert loop.is_running
        loop.stop()
        await asyncio.wait_for(task, timeout=1.0)
        assert loop.tick_count >= 1
        assert world.tick_counter == loop.tick_count

    @pytest.mark.asyncio
    async def test_overrun_counted(self):
        world = MagicMock()
        world.tick_rate = 100
        world.tick_counter = 0
        loop = GameLoop(world, tick_rate=100)

        def slow_step() -> str:
            time.sleep(0.02)
            if loop.tick_count >= 2:
                loop.stop()
            return ""

        world.step.side_effect = slow_step
        await asyncio.wait_for(loop.run(), timeout=1.0)
        assert loop.tick_count == 3
        assert loop.overruns >= 1
