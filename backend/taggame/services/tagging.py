import logging
import time
from typing import Callable, Optional

from taggame.messages import NewTagger, Outbound
from taggame.models import GameRules, Room


class TagHandler:
    """Validate and apply tagger hand-offs.

    Failed validation is never reported to the sender: the attempt is
    logged and dropped. Immunity is read lazily from `immune_until`.
    """

    def __init__(self, bus, rules: GameRules,
                 clock: Callable[[], float] = time.time,
                 logger: Optional[logging.Logger] = None):
        self._bus = bus
        self._rules = rules
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    def attempt(self, room: Optional[Room], sender_id: str, target_id: str) -> bool:
        code = room.code if room else None
        if room is None or not room.round_active:
            self._logger.info(f"[tag-ignored] room={code} sender={sender_id} game not running")
            return False
        sender = room.players.get(sender_id)
        if sender is None or room.tagger_id != sender_id:
            self._logger.info(
                f"[tag-ignored] room={code} sender={sender_id} is not the tagger (expected {room.tagger_id})"
            )
            return False
        target = room.players.get(target_id)
        if target is None:
            self._logger.info(f"[tag-ignored] room={code} target={target_id} not found")
            return False
        now = self._clock()
        if sender.is_immune(now):
            self._logger.info(
                f"[tag-ignored] room={code} sender={sender_id} immune until {sender.immune_until:.3f}"
            )
            return False
        if sender_id == target_id:
            self._logger.info(f"[tag-ignored] room={code} sender={sender_id} tried to self-tag")
            return False

        self.hand_off(room, sender_id, target_id, now)
        return True

    def hand_off(self, room: Room, old_id: Optional[str], new_id: str, now: Optional[float] = None) -> None:
        """Make `new_id` the tagger, immune for the configured window."""
        if now is None:
            now = self._clock()
        old = room.players.get(old_id) if old_id else None
        if old is not None:
            old.is_tagger = False
        new = room.players[new_id]
        new.is_tagger = True
        new.immune_until = now + self._rules.tag_immunity_ms / 1000.0
        room.tagger_id = new_id
        self._bus.emit(Outbound.NEW_TAGGER, NewTagger(newTaggerId=new_id, oldTaggerId=old_id).model_dump(), to=room.group)
        self._logger.info(
            f"[tag] room={room.code} {old_id} -> {new_id} immune until {new.immune_until:.3f}"
        )
