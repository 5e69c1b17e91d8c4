import logging
import random
import time
from typing import Callable, Optional

from taggame.errors import StartFailed
from taggame.messages import GameOver, GameStarted, Outbound
from taggame.models import GameRules, Room
from taggame.services.scheduler import IntervalTask

NOT_ENOUGH_PLAYERS = 'Not enough players'


class RoundController:
    """Per-room countdown: Idle -> Active -> Idle.

    Every public method expects the coordinator lock to be held by the
    caller. Ticks arrive from the scheduler and take the lock themselves.
    """

    def __init__(self, rooms, bus, scheduler, rules: GameRules, lock,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[logging.Logger] = None):
        self._rooms = rooms
        self._bus = bus
        self._scheduler = scheduler
        self._rules = rules
        self._lock = lock
        self._rng = rng or random.Random()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def start(self, room: Room, requester_id: str) -> str:
        """Start a round in `room` on behalf of `requester_id`.

        Returns the id of the initial tagger. Raises StartFailed when the
        requester is not the host, a round is already running, or the room
        is empty. Validation, tagger selection and activation all happen
        against the same membership snapshot.
        """
        if room.host_id != requester_id:
            raise StartFailed(StartFailed.NOT_HOST)
        if room.round_active:
            raise StartFailed(StartFailed.ALREADY_ACTIVE)
        player_ids = list(room.players)
        if not player_ids:
            raise StartFailed(StartFailed.NO_PLAYERS)

        room.clear_taggers()
        tagger_id = self._rng.choice(player_ids)
        room.players[tagger_id].is_tagger = True
        room.tagger_id = tagger_id
        room.time_remaining = room.settings.timer
        room.round_active = True

        self._bus.emit(Outbound.GAME_STARTED, GameStarted(
            taggerId=tagger_id,
            startTime=int(self._clock() * 1000),
            duration=room.time_remaining,
        ).model_dump(), to=room.group)

        self.cancel(room)
        room.round_task = self._scheduler.call_every(
            self._rules.tick_interval_sec,
            lambda task, code=room.code: self._tick(code, task),
        )
        self._logger.info(
            f"[round-start] room={room.code} tagger={tagger_id} players={len(player_ids)} duration={room.time_remaining}s"
        )
        return tagger_id

    def force_end(self, room: Room, reason: Optional[str] = None) -> bool:
        """End the round now. Ending an idle room is a no-op returning False."""
        if not room.round_active:
            return False
        self._finish(room, reason)
        return True

    def cancel(self, room: Room) -> None:
        task = room.round_task
        room.round_task = None
        if task is not None:
            task.cancel()

    def _finish(self, room: Room, reason: Optional[str]) -> None:
        self.cancel(room)
        room.round_active = False
        room.time_remaining = 0
        room.clear_taggers()
        self._bus.emit(Outbound.GAME_OVER, GameOver(reason=reason).payload(), to=room.group)
        self._logger.info(f"[round-end] room={room.code} reason={reason or 'time'}")

    def _tick(self, code: str, task: IntervalTask) -> None:
        with self._lock:
            room = self._rooms.get(code)
            if room is None or room.round_task is not task or not room.round_active:
                # Orphaned interval: the room is gone or moved on
                task.cancel()
                self._logger.info(f"[timer-abort] room={code} stale tick ignored")
                return
            if room.time_remaining > 0:
                room.time_remaining -= 1
                self._bus.emit(Outbound.TIMER_UPDATE, room.time_remaining, to=room.group)
            if room.time_remaining <= 0:
                self._finish(room, None)
