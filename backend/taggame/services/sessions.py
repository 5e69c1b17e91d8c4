import logging
import random
import threading
import time
from typing import Any, Callable, Dict, Iterator, Optional

from taggame.errors import RoomFull, RoomNotFound, StartFailed
from taggame.messages import Outbound, PlayerMoved, PlayerMovement
from taggame.models import GameRules, Player, Room, RoomSettings
from taggame.services.codes import RoomCodeAllocator
from taggame.services.rounds import NOT_ENOUGH_PLAYERS, RoundController
from taggame.services.tagging import TagHandler


class ConnectionRegistry:
    """Live connections and the room code each one belongs to."""

    def __init__(self):
        self._rooms: Dict[str, Optional[str]] = {}

    def __contains__(self, sid: str) -> bool:
        return sid in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def register(self, sid: str) -> None:
        self._rooms.setdefault(sid, None)

    def unregister(self, sid: str) -> None:
        self._rooms.pop(sid, None)

    def room_of(self, sid: str) -> Optional[str]:
        return self._rooms.get(sid)

    def assign(self, sid: str, code: str) -> None:
        self._rooms[sid] = code

    def release(self, sid: str) -> None:
        if sid in self._rooms:
            self._rooms[sid] = None


class RoomStore:
    """Room code -> Room."""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def get(self, code: Optional[str]) -> Optional[Room]:
        if code is None:
            return None
        return self._rooms.get(code)

    def add(self, room: Room) -> None:
        self._rooms[room.code] = room

    def remove(self, code: str) -> Optional[Room]:
        return self._rooms.pop(code, None)


class SessionCoordinator:
    """Single owner of all room and connection state.

    Socket handlers and timer ticks both go through these methods, each of
    which runs to completion under one lock. Membership is always changed
    in the room and in the connection registry together.
    """

    def __init__(self, bus, scheduler, rules: Optional[GameRules] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[logging.Logger] = None):
        self.rules = rules or GameRules()
        self.connections = ConnectionRegistry()
        self.rooms = RoomStore()
        self._bus = bus
        self._rng = rng or random.Random()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._codes = RoomCodeAllocator(self._rng, attempts=self.rules.room_code_attempts)
        self.rounds = RoundController(
            self.rooms, bus, scheduler, self.rules, self._lock,
            rng=self._rng, clock=clock, logger=self._logger,
        )
        self.tags = TagHandler(bus, self.rules, clock=clock, logger=self._logger)

    # ---- Connections ----

    def connect(self, sid: str) -> None:
        with self._lock:
            self.connections.register(sid)
            self._logger.info(f"[connect] sid={sid}")

    def disconnect(self, sid: str) -> None:
        with self._lock:
            self.remove_member(sid)
            self.connections.unregister(sid)
            self._logger.info(f"[disconnect] sid={sid}")

    # ---- Roster ----

    def create_room(self, sid: str, timer: Optional[int] = None) -> Room:
        """Create a room with `sid` as sole member and host.

        Raises RoomCodesExhausted when no code is free.
        """
        with self._lock:
            if self.connections.room_of(sid) is not None:
                self.remove_member(sid)
            code = self._codes.allocate(self.rooms)
            room = Room(code=code, host_id=sid, settings=RoomSettings(timer=timer or self.rules.default_round_sec))
            room.players[sid] = self._spawn(sid)
            self.rooms.add(room)
            self.connections.assign(sid, code)
            self._bus.join(sid, room.group)
            self._bus.emit(Outbound.ROOM_CREATED, room.to_dict(include_round=False), to=sid)
            self._logger.info(f"[room-created] room={code} host={sid} timer={room.settings.timer}s")
            return room

    def join_room(self, sid: str, code: str) -> Room:
        """Add `sid` to room `code`. Raises RoomNotFound or RoomFull."""
        with self._lock:
            room = self.rooms.get(code)
            if room is None:
                self._logger.info(f"[join-failed] room={code} sid={sid} not found")
                raise RoomNotFound()
            if sid in room.players:
                self._bus.emit(Outbound.ROOM_JOINED, room.to_dict(), to=sid)
                return room
            if len(room.players) >= self.rules.room_capacity:
                self._logger.info(f"[join-failed] room={code} sid={sid} full")
                raise RoomFull()
            if self.connections.room_of(sid) is not None:
                self.remove_member(sid)
                if code not in self.rooms:
                    raise RoomNotFound()

            player = self._spawn(sid)
            room.players[sid] = player
            self.connections.assign(sid, code)
            self._bus.join(sid, room.group)
            self._bus.emit(Outbound.ROOM_JOINED, room.to_dict(), to=sid)
            self._bus.emit(Outbound.PLAYER_JOINED, player.to_dict(), to=room.group, skip_sid=sid)
            self._logger.info(f"[room-joined] room={code} sid={sid} players={len(room.players)}")
            return room

    def remove_member(self, sid: str) -> Optional[str]:
        """Take `sid` out of its room; returns the room code it left, if any."""
        with self._lock:
            code = self.connections.room_of(sid)
            room = self.rooms.get(code)
            self.connections.release(sid)
            if room is None or sid not in room.players:
                return None

            del room.players[sid]
            self._bus.leave(sid, room.group)
            self._bus.emit(Outbound.PLAYER_LEFT, sid, to=room.group)
            self._logger.info(f"[room-left] room={code} sid={sid} remaining={len(room.players)}")

            if not room.players:
                self.rounds.cancel(room)
                self.rooms.remove(code)
                self._logger.info(f"[room-deleted] room={code} empty")
                return code

            if room.host_id == sid:
                room.host_id = next(iter(room.players))
                self._bus.emit(Outbound.NEW_HOST, room.host_id, to=room.group)
                self._logger.info(f"[new-host] room={code} host={room.host_id}")

            if room.round_active:
                if len(room.players) < self.rules.min_players:
                    self.rounds.force_end(room, NOT_ENOUGH_PLAYERS)
                elif room.tagger_id == sid:
                    successor = self._rng.choice(list(room.players))
                    self.tags.hand_off(room, sid, successor)
            return code

    def update_movement(self, sid: str, movement: PlayerMovement) -> bool:
        with self._lock:
            room = self.rooms.get(self.connections.room_of(sid))
            player = room.players.get(sid) if room else None
            if player is None:
                return False
            player.x = movement.x
            player.y = movement.y
            player.velocity_x = movement.velocityX
            player.velocity_y = movement.velocityY
            player.flip_x = movement.flipX
            self._bus.emit(Outbound.PLAYER_MOVED, PlayerMoved(
                id=sid,
                x=player.x,
                y=player.y,
                velocityX=player.velocity_x,
                velocityY=player.velocity_y,
                flipX=player.flip_x,
            ).model_dump(), to=room.group, skip_sid=sid)
            return True

    # ---- Rounds and tagging ----

    def start_round(self, sid: str) -> str:
        """Start a round in the sender's room; returns the tagger id.

        Raises StartFailed, with NotHost when the sender is in no room.
        """
        with self._lock:
            room = self.rooms.get(self.connections.room_of(sid))
            if room is None:
                self._logger.info(f"[start-failed] sid={sid} not in a room")
                raise StartFailed(StartFailed.NOT_HOST)
            return self.rounds.start(room, sid)

    def force_end_round(self, code: str, reason: Optional[str] = None) -> bool:
        with self._lock:
            room = self.rooms.get(code)
            if room is None:
                return False
            return self.rounds.force_end(room, reason)

    def attempt_tag(self, sid: str, target_id: str) -> bool:
        with self._lock:
            room = self.rooms.get(self.connections.room_of(sid))
            return self.tags.attempt(room, sid, target_id)

    # ---- Queries ----

    def room_snapshot(self, code: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self.rooms.get(code)
            if room is None:
                return None
            data = room.to_dict()
            data['timeRemaining'] = room.time_remaining
            return data

    def room_count(self) -> int:
        with self._lock:
            return len(self.rooms)

    def _spawn(self, sid: str) -> Player:
        return Player(id=sid, x=self.rules.spawn_x, y=self.rules.spawn_y)
