"""World — the authoritative simulation and session coordinator.

Owns every admitted client, its ship and all live shots. One call to
:meth:`World.step` is one tick, and the order of the phases inside it
must be preserved:

1. ingest     — newest input frame per client → ship controls, fire
2. integrate  — update every ship, then every shot
3. ship/ship  — rebound overlapping ships
4. ship/shot  — damage ships, consume shots
5. prune      — drop destroyed ships, disconnected clients, dead shots
6. admit      — give queued connections a ship, or reject them
7. broadcast  — encode the world and queue it for every client
8. tick_counter += 1

``step`` never awaits, so a client can never observe a half-updated
world. Network tasks talk to the world only through :class:`Session`
buffers and :meth:`request_admission`.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from typing import Optional

from celestia.engine.collisions import colliding_ship_pairs, rebound
from celestia.loaders.game_config_loader import GameConfig
from celestia.models.session import CLOSE_NORMAL, CLOSE_TRY_AGAIN_LATER, Session, SessionState
from celestia.models.ship import Ship
from celestia.models.shot import Shot
from celestia.models.snapshot import ShipView, ShotView, WorldSnapshot
from celestia.network.codec import decode_input, encode_world
from celestia.util.constants import SHOT_DAMAGE
from celestia.util.errors import AdmissionRejected, MalformedInput
from celestia.util.events import (
    ClientAdmitted,
    ClientRejected,
    ClientRemoved,
    EventBus,
    ShipDestroyed,
    ShipHit,
    ShipsCollided,
    ShotExpired,
    ShotFired,
)

log = logging.getLogger(__name__)


class World:
    """The single owner of all simulation state.

    Args:
        config: Loaded game configuration (world size, tick rate, limits).
        event_bus: Receives combat and session events; optional.
    """

    def __init__(self, config: GameConfig, event_bus: Optional[EventBus] = None) -> None:
        self.config = config
        self.events = event_bus or EventBus()
        self.ships: dict[int, Ship] = {}
        self.sessions: dict[int, Session] = {}
        self.shots: list[Shot] = []
        self.tick_counter: int = 0
        self.last_frame: str = ""
        self._pending: deque[Session] = deque()
        self._shot_ids = itertools.count(1)

    # -- Properties ------------------------------------------------------

    @property
    def max_clients(self) -> int:
        return self.config.max_clients

    @property
    def tick_rate(self) -> int:
        return self.config.tick_rate

    @property
    def client_count(self) -> int:
        return len(self.sessions)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _next_shot_id(self) -> int:
        return next(self._shot_ids)

    def _log(self, level: int, msg: str, *args: object) -> None:
        log.log(level, "[t%d] " + msg, self.tick_counter, *args)

    # -- Admission -------------------------------------------------------

    def request_admission(self, session: Session) -> None:
        """Queue a new connection; it is admitted or rejected next tick."""
        self._pending.append(session)

    def admit(self, session: Session) -> Ship:
        """Create a ship at the world centre for ``session``.

        Raises:
            AdmissionRejected: If ``max_clients`` ships already exist.
        """
        if len(self.ships) >= self.max_clients:
            raise AdmissionRejected(session.client_id, self.max_clients)

        cfg = self.config
        ship = Ship(
            cfg.world_width / 2,
            cfg.world_height / 2,
            name=session.name,
            shield_color=cfg.shield_color,
            world_width=cfg.world_width,
            world_height=cfg.world_height,
            air_effect=cfg.air_effect,
        )
        self.ships[session.client_id] = ship
        self.sessions[session.client_id] = session
        session.state = SessionState.ADMITTED
        self._log(logging.INFO, "Added a new client from %s (id=%d)", session.name, session.client_id)
        self.events.emit(ClientAdmitted(client_id=session.client_id, name=session.name))
        return ship

    # -- Tick ------------------------------------------------------------

    def step(self) -> str:
        """Run one full tick and return the frame that was broadcast."""
        self._ingest()
        self._integrate()
        self._collide_ships()
        self._collide_shots()
        self._prune()
        self._admit_pending()
        frame = self._broadcast()
        self.tick_counter += 1
        return frame

    def _ingest(self) -> None:
        """Apply each client's newest input frame to its ship."""
        tick = self.tick_counter
        for cid, session in self.sessions.items():
            ship = self.ships[cid]
            line = session.take_latest_input()
            fire = False
            if line is not None:
                try:
                    frame = decode_input(line)
                except MalformedInput as e:
                    self._log(logging.INFO, "Data from client %s is malformed, skipping: %s (%r)",
                              session.name, e, e.payload)
                else:
                    ship.apply_input(frame.up, frame.left, frame.right)
                    fire = frame.fire

            ship.steer()
            if fire:
                shot = ship.fire(tick, self.tick_rate, self._next_shot_id)
                if shot is not None:
                    self.shots.append(shot)
                    self.events.emit(ShotFired(client_id=cid, shot_id=shot.sid))

    def _integrate(self) -> None:
        tick = self.tick_counter
        for ship in self.ships.values():
            ship.update(tick)
        for shot in self.shots:
            shot.update(tick)

    def _collide_ships(self) -> None:
        ids = {id(ship): cid for cid, ship in self.ships.items()}
        for a, b in colliding_ship_pairs(self.ships.values()):
            vx, vy = rebound(a, b)
            self._log(logging.DEBUG, "Collision: %s, %s [%.2f, %.2f]", a.name, b.name, vx, vy)
            self.events.emit(ShipsCollided(first_id=ids[id(a)], second_id=ids[id(b)]))

    def _collide_shots(self) -> None:
        """Damage ships hit by shots; a shot is consumed by its first hit.

        Ships are scanned in admission order, so when one shot overlaps
        two ships the earlier-admitted ship takes the hit.
        """
        tick = self.tick_counter
        consumed: set[int] = set()
        for cid, ship in self.ships.items():
            for shot in self.shots:
                if id(shot) in consumed or shot.is_destroyed(tick):
                    continue
                if not ship.colliding_with(shot) or ship.already_hit_by(shot.sid):
                    continue
                ship.apply_hit(SHOT_DAMAGE, shot.sid)
                if shot.owner is not None:
                    shot.owner.detach_shot()
                shot.destroy()
                consumed.add(id(shot))
                self._log(logging.DEBUG, "Shot %d hit %s, shield now %d",
                          shot.sid, ship.name, ship.shield_strength)
                self.events.emit(ShipHit(client_id=cid, shot_id=shot.sid,
                                         shield_strength=ship.shield_strength))
        if consumed:
            self.shots = [s for s in self.shots if id(s) not in consumed]

    def _prune(self) -> None:
        """Remove destroyed ships, disconnected clients and dead shots."""
        tick = self.tick_counter

        destroyed = [cid for cid, ship in self.ships.items() if ship.is_destroyed(tick)]
        for cid in destroyed:
            self._log(logging.INFO, "Ship %s destroyed", self.ships[cid].name)
            self.events.emit(ShipDestroyed(client_id=cid, tick=tick))
            self._remove_client(cid, "destroyed")

        gone = [cid for cid, s in self.sessions.items() if s.state is SessionState.DISCONNECTED]
        for cid in gone:
            self._log(logging.INFO, "Client %s disconnected, removing ship", self.sessions[cid].name)
            self._remove_client(cid, "disconnected")

        dead = [s for s in self.shots if s.is_destroyed(tick)]
        for shot in dead:
            if shot.is_expired(tick):
                self._log(logging.DEBUG, "Decayed shot id: %d", shot.sid)
                self.events.emit(ShotExpired(shot_id=shot.sid))
            if shot.owner is not None:
                shot.owner.detach_shot()
        if dead:
            self.shots = [s for s in self.shots if not s.is_destroyed(tick)]

    def _remove_client(self, cid: int, reason: str) -> None:
        ship = self.ships.pop(cid)
        session = self.sessions.pop(cid)
        ship.detach_shot()
        if reason == "destroyed":
            session.close(SessionState.EVICTED, CLOSE_NORMAL, reason)
        self.events.emit(ClientRemoved(client_id=cid, reason=reason))

    def _admit_pending(self) -> None:
        while self._pending:
            session = self._pending.popleft()
            if session.is_closed:
                continue
            try:
                self.admit(session)
            except AdmissionRejected:
                self._log(logging.INFO, "Could not add new client from %s: too many clients connected",
                          session.name)
                session.close(SessionState.REJECTED, CLOSE_TRY_AGAIN_LATER)
                self.events.emit(ClientRejected(client_id=session.client_id, name=session.name))

    def _broadcast(self) -> str:
        frame = encode_world(self.ships.values(), self.shots)
        for session in self.sessions.values():
            session.deliver(frame)
        self.last_frame = frame
        return frame

    # -- Snapshot --------------------------------------------------------

    def snapshot(self) -> WorldSnapshot:
        """Immutable copy of the current world for renderers."""
        ships = tuple(
            ShipView(
                client_id=cid,
                name=ship.name,
                x=ship.x_position,
                y=ship.y_position,
                angle=ship.angle,
                shield_color=ship.shield_color,
                shield_strength=ship.shield_strength,
                points=tuple((p.x, p.y) for p in ship.points),
                shot_id=ship.shot.sid if ship.shot is not None else None,
            )
            for cid, ship in self.ships.items()
        )
        owners = {id(ship): cid for cid, ship in self.ships.items()}
        shots = tuple(
            ShotView(shot_id=s.sid, x=s.x_position, y=s.y_position,
                     angle=s.angle, spawn_tick=s.spawn_tick,
                     owner_id=owners.get(id(s.owner)) if s.owner is not None else None)
            for s in self.shots
        )
        return WorldSnapshot(
            tick=self.tick_counter,
            width=self.config.world_width,
            height=self.config.world_height,
            ships=ships,
            shots=shots,
        )
