from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GameRules:
    """Numeric game constants, taken from the Flask config."""
    room_capacity: int = 6
    min_players: int = 2
    spawn_x: float = 400.0
    spawn_y: float = 300.0
    default_round_sec: int = 120
    max_round_sec: int = 3600
    tick_interval_sec: float = 1.0
    tag_immunity_ms: int = 500
    room_code_attempts: int = 100

    @classmethod
    def from_config(cls, config) -> 'GameRules':
        return cls(
            room_capacity=int(config.get('ROOM_CAPACITY', 6)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            spawn_x=float(config.get('SPAWN_X', 400)),
            spawn_y=float(config.get('SPAWN_Y', 300)),
            default_round_sec=int(config.get('DEFAULT_ROUND_SEC', 120)),
            max_round_sec=int(config.get('MAX_ROUND_SEC', 3600)),
            tick_interval_sec=float(config.get('TICK_INTERVAL_SEC', 1)),
            tag_immunity_ms=int(config.get('TAG_IMMUNITY_MS', 500)),
            room_code_attempts=int(config.get('ROOM_CODE_ATTEMPTS', 100)),
        )


@dataclass
class RoomSettings:
    timer: int = 120

    def to_dict(self) -> Dict[str, Any]:
        return {'timer': self.timer}


@dataclass
class Player:
    id: str
    x: float = 0.0
    y: float = 0.0
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    flip_x: bool = False
    is_tagger: bool = False
    # Wall-clock seconds; 0 means never immune
    immune_until: float = 0.0

    def is_immune(self, now: float) -> bool:
        return self.immune_until > now

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'velocityX': self.velocity_x,
            'velocityY': self.velocity_y,
            'flipX': self.flip_x,
            'isTagger': self.is_tagger,
        }


@dataclass
class Room:
    code: str
    host_id: Optional[str]
    settings: RoomSettings
    players: Dict[str, Player] = field(default_factory=dict)
    tagger_id: Optional[str] = None
    round_active: bool = False
    time_remaining: int = 0
    # Handle of the running countdown, owned by the round controller
    round_task: Any = None

    @property
    def group(self) -> str:
        return room_group(self.code)

    def clear_taggers(self) -> None:
        self.tagger_id = None
        for player in self.players.values():
            player.is_tagger = False

    def players_dict(self) -> Dict[str, Dict[str, Any]]:
        return {pid: p.to_dict() for pid, p in self.players.items()}

    def to_dict(self, include_round: bool = True) -> Dict[str, Any]:
        data = {
            'roomCode': self.code,
            'players': self.players_dict(),
            'hostId': self.host_id,
            'settings': self.settings.to_dict(),
        }
        if include_round:
            data['taggerId'] = self.tagger_id
            data['gameStarted'] = self.round_active
        return data


def room_group(code: str) -> str:
    """Name of the broadcast group holding every member of a room."""
    return f"room:{code}"
