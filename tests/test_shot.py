"""Tests for shot flight and lifetime."""

import pytest

from celestia.models.shot import Shot


def _shot(angle: float = 0, spawn_tick: int = 0, tick_rate: float = 30) -> Shot:
    return Shot(0, 0, angle, sid=1, spawn_tick=spawn_tick, tick_rate=tick_rate)


class TestFlight:
    def test_moves_along_heading(self):
        shot = _shot(angle=0)
        shot.update(0)
        assert shot.position.x == pytest.approx(24)
        assert shot.position.y == pytest.approx(0, abs=1e-9)

    def test_moves_down_at_90_degrees(self):
        shot = _shot(angle=90)
        shot.update(0)
        shot.update(1)
        assert shot.position.y == pytest.approx(48)

    def test_destroyed_shot_does_not_move(self):
        shot = _shot()
        shot.destroy()
        shot.update(0)
        assert shot.position.x == 0

    def test_radius(self):
        assert _shot().effective_radius == 5


class TestLifetime:
    def test_lifetime_scales_with_tick_rate(self):
        assert _shot(tick_rate=30).lifetime == pytest.approx(24)
        assert _shot(tick_rate=60).lifetime == pytest.approx(48)

    def test_destroyed_exactly_at_lifetime(self):
        shot = _shot(spawn_tick=0, tick_rate=30)
        assert not shot.is_destroyed(23)
        assert shot.is_destroyed(24)
        assert shot.is_expired(24)

    def test_lifetime_counts_from_spawn(self):
        shot = _shot(spawn_tick=100)
        assert not shot.is_destroyed(123)
        assert shot.is_destroyed(124)

    def test_destroy_is_idempotent(self):
        shot = _shot()
        shot.destroy()
        shot.destroy()
        assert shot.is_destroyed(0)
        assert not shot.is_expired(0)
