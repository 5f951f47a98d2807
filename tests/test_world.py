"""Tests for the world tick: admission, input, combat, pruning, broadcast."""

from __future__ import annotations

import itertools
import logging

import pytest

from celestia.engine.world import World
from celestia.loaders.game_config_loader import GameConfig
from celestia.models.session import CloseRequest, Session, SessionState
from celestia.models.shot import Shot
from celestia.models.vector import Vector2
from celestia.util.errors import AdmissionRejected
from celestia.util.events import (
    ClientRejected,
    ClientRemoved,
    ShipDestroyed,
    ShipHit,
    ShipsCollided,
    ShotExpired,
    ShotFired,
)


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def _world(**overrides) -> World:
    return World(GameConfig(**overrides))


_ids = itertools.count(1)


def _connect(world: World, name: str = "") -> Session:
    cid = next(_ids)
    session = Session(client_id=cid, name=name or f"10.0.0.{cid}")
    world.request_admission(session)
    return session


def _drain(session: Session) -> list:
    items = []
    while not session.outbox.empty():
        items.append(session.outbox.get_nowait())
    return items


def _record(world: World, *event_types) -> list:
    received: list = []
    for et in event_types:
        world.events.on(et, received.append)
    return received


def _place(world: World, session: Session, x: float, y: float) -> None:
    ship = world.ships[session.client_id]
    ship.position.x = x
    ship.position.y = y


# ===================================================================
# Admission
# ===================================================================


class TestAdmission:
    def test_admitted_on_next_step(self):
        world = _world()
        session = _connect(world)
        assert world.ships == {}
        world.step()
        ship = world.ships[session.client_id]
        assert session.state is SessionState.ADMITTED
        assert (ship.x_position, ship.y_position) == (400, 400)
        assert ship.angle == 270
        assert ship.shield_strength == 100
        assert ship.shield_color == 150

    def test_first_frame_includes_new_ship(self):
        world = _world()
        session = _connect(world)
        frame = world.step()
        assert frame == "400,400,270,150,100//false"
        assert _drain(session) == [frame]
        assert world.tick_counter == 1

    def test_eleventh_client_rejected(self):
        world = _world(max_clients=10)
        rejected = _record(world, ClientRejected)
        sessions = [_connect(world) for _ in range(11)]
        world.step()
        assert len(world.ships) == 10
        last = sessions[-1]
        assert last.client_id not in world.ships
        assert last.state is SessionState.REJECTED
        assert _drain(last) == [CloseRequest(1013, "")]
        assert [e.client_id for e in rejected] == [last.client_id]

    def test_admit_raises_when_full(self):
        world = _world(max_clients=1)
        _connect(world)
        world.step()
        with pytest.raises(AdmissionRejected):
            world.admit(Session(client_id=999, name="late"))

    def test_closed_pending_session_skipped(self):
        world = _world()
        session = _connect(world)
        session.mark_disconnected()
        world.step()
        assert world.ships == {}
        assert world.pending_count == 0


# ===================================================================
# Input
# ===================================================================


class TestInput:
    def test_propulsion_applied_next_integration(self):
        world = _world()
        session = _connect(world)
        world.step()
        ship = world.ships[session.client_id]
        session.push_input("true:false:false:false")
        world.step()
        # Heading 270 points up the screen
        assert ship.displacement.y == pytest.approx(-0.2)
        assert ship.position.y == pytest.approx(399.8)

    def test_controls_hold_until_next_frame(self):
        world = _world()
        session = _connect(world)
        world.step()
        ship = world.ships[session.client_id]
        session.push_input("true:true:false:false")
        world.step()
        world.step()
        assert ship.angle == 250
        assert ship.thrust
        session.push_input("false:false:false:false")
        world.step()
        assert ship.angle == 250
        assert not ship.thrust

    def test_only_latest_frame_used(self):
        world = _world()
        session = _connect(world)
        world.step()
        session.push_input("true:false:false:false")
        session.push_input("false:false:false:false")
        world.step()
        assert not world.ships[session.client_id].thrust
        assert session.dropped_inputs == 1

    def test_malformed_input_logged_and_skipped(self, caplog):
        caplog.set_level(logging.INFO, logger="celestia.engine.world")
        world = _world()
        session = _connect(world)
        world.step()
        session.push_input("true:false:false:false")
        world.step()
        session.push_input("garbage")
        world.step()
        assert world.ships[session.client_id].thrust
        assert "[t2] Data from client" in caplog.text
        assert "'garbage'" in caplog.text


# ===================================================================
# Shooting
# ===================================================================


class TestShooting:
    def test_fire_spawns_one_shot(self):
        world = _world()
        fired = _record(world, ShotFired)
        session = _connect(world)
        world.step()
        session.push_input("false:false:false:true")
        world.step()
        session.push_input("false:false:false:true")
        world.step()
        assert len(world.shots) == 1
        assert world.ships[session.client_id].shot is world.shots[0]
        assert [e.client_id for e in fired] == [session.client_id]

    def test_shot_ids_increase(self):
        world = _world()
        a, b = _connect(world), _connect(world)
        world.step()
        a.push_input("false:false:false:true")
        b.push_input("false:false:false:true")
        world.step()
        assert sorted(s.sid for s in world.shots) == [1, 2]

    def test_shot_expires_after_lifetime(self):
        world = _world()
        expired = _record(world, ShotExpired)
        session = _connect(world)
        world.step()
        session.push_input("false:false:false:true")
        world.step()
        shot = world.shots[0]
        while world.tick_counter < shot.spawn_tick + 24:
            world.step()
            assert shot in world.shots
        world.step()
        assert world.shots == []
        assert world.ships[session.client_id].shot is None
        assert [e.shot_id for e in expired] == [shot.sid]

    def test_refire_on_expiry_tick(self):
        world = _world()
        expired = _record(world, ShotExpired)
        session = _connect(world)
        world.step()
        session.push_input("false:false:false:true")
        world.step()
        old = world.shots[0]
        while world.tick_counter < old.spawn_tick + 24:
            world.step()
        session.push_input("false:false:false:true")
        world.step()
        ship = world.ships[session.client_id]
        assert ship.shot is not None
        assert ship.shot is not old
        assert world.shots == [ship.shot]
        assert [e.shot_id for e in expired] == [old.sid]

    def test_frame_lists_shots(self):
        world = _world()
        session = _connect(world)
        world.step()
        session.push_input("false:false:false:true")
        frame = world.step()
        assert not frame.endswith("//false")


# ===================================================================
# Combat
# ===================================================================


def _arena(world: World, *positions: tuple[float, float]) -> list[Session]:
    sessions = [_connect(world) for _ in positions]
    world.step()
    for session, (x, y) in zip(sessions, positions):
        _place(world, session, x, y)
    return sessions


def _shot_at(world: World, owner: Session, x: float, y: float, sid: int = 99) -> Shot:
    ship = world.ships[owner.client_id]
    shot = Shot(x, y, 0, sid, world.tick_counter, world.tick_rate, owner=ship)
    ship.shot = shot
    world.shots.append(shot)
    return shot


class TestCombat:
    def test_shot_hits_once(self):
        world = _world()
        hits = _record(world, ShipHit)
        a, b = _arena(world, (100, 100), (300, 100))
        # One step moves the shot 24 units onto b
        _shot_at(world, a, 300, 100)
        world.step()
        target = world.ships[b.client_id]
        assert target.shield_strength == 90
        assert target.already_hit_by(99)
        assert world.shots == []
        assert world.ships[a.client_id].shot is None
        world.step()
        assert target.shield_strength == 90
        assert [(e.client_id, e.shot_id) for e in hits] == [(b.client_id, 99)]

    def test_earlier_admitted_ship_takes_shared_hit(self):
        world = _world()
        a, b, c = _arena(world, (100, 100), (300, 100), (300, 130))
        _shot_at(world, a, 300, 115)
        world.step()
        assert world.ships[b.client_id].shield_strength == 90
        assert world.ships[c.client_id].shield_strength == 100

    def test_memoized_shot_does_not_damage(self):
        world = _world()
        a, b = _arena(world, (100, 100), (300, 100))
        world.ships[b.client_id].hit_by.add(99)
        shot = _shot_at(world, a, 300, 100)
        world.step()
        assert world.ships[b.client_id].shield_strength == 100
        assert shot in world.shots

    def test_destroyed_ship_removed_and_session_closed(self):
        world = _world()
        events = _record(world, ShipDestroyed, ClientRemoved)
        a, b = _arena(world, (100, 100), (300, 100))
        world.ships[b.client_id].shield_strength = 10
        _shot_at(world, a, 300, 100)
        _drain(b)
        frame = world.step()
        assert b.client_id not in world.ships
        assert b.state is SessionState.EVICTED
        assert _drain(b) == [CloseRequest(1000, "destroyed")]
        assert frame.count(";") == 0
        assert [type(e) for e in events] == [ShipDestroyed, ClientRemoved]
        assert events[1].reason == "destroyed"

    def test_own_shot_can_hit_at_full_speed(self):
        world = _world()
        (session,) = _arena(world, (400.4, 400))
        ship = world.ships[session.client_id]
        ship.angle = 0.0
        ship.displacement = Vector2(3.3, 0)
        session.push_input("true:false:false:true")
        world.step()
        # Rounded centres end up 404 and 434, exactly the radius sum apart
        assert ship.shield_strength == 90
        assert ship.shot is None
        assert world.shots == []

    def test_ships_rebound(self):
        world = _world()
        collided = _record(world, ShipsCollided)
        a, b = _connect(world), _connect(world)
        world.step()
        world.step()
        first = world.ships[a.client_id]
        second = world.ships[b.client_id]
        assert (first.displacement.x, first.displacement.y) == pytest.approx((-0.875, 0))
        assert (second.displacement.x, second.displacement.y) == pytest.approx((0.875, 0))
        assert len(collided) == 1


# ===================================================================
# Disconnect, broadcast, snapshot
# ===================================================================


class TestLifecycle:
    def test_disconnect_removes_ship_next_prune(self):
        world = _world()
        removed = _record(world, ClientRemoved)
        session = _connect(world)
        world.step()
        session.mark_disconnected()
        assert session.client_id in world.ships
        world.step()
        assert world.ships == {}
        assert world.sessions == {}
        assert [e.reason for e in removed] == ["disconnected"]

    def test_broadcast_in_admission_order(self):
        world = _world()
        a, b = _connect(world), _connect(world)
        world.step()
        _place(world, a, 10, 10)
        _place(world, b, 700, 700)
        frame = world.step()
        assert frame.startswith("10,10,")
        assert ";700,700," in frame
        assert _drain(a)[-1] == frame
        assert _drain(b)[-1] == frame

    def test_snapshot_is_detached_copy(self):
        world = _world()
        session = _connect(world)
        world.step()
        session.push_input("false:false:false:true")
        world.step()
        snap = world.snapshot()
        assert snap.tick == world.tick_counter
        assert snap.ships[0].client_id == session.client_id
        assert len(snap.ships[0].points) == 3
        assert snap.shots[0].owner_id == session.client_id
        world.ships[session.client_id].shield_strength = 50
        assert snap.ships[0].shield_strength == 100
