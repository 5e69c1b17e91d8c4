"""Socket.IO message catalogue.

Inbound payloads are parsed into pydantic models before any handler sees
them; anything that does not parse is rejected by the router. Outbound
event payloads are built from the models at the bottom of this module.
"""
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints, TypeAdapter


class Inbound:
    CREATE_ROOM = 'createRoom'
    JOIN_ROOM = 'joinRoom'
    LEAVE_ROOM = 'leaveRoom'
    START_GAME = 'startGame'
    PLAYER_MOVEMENT = 'playerMovement'
    TAG_PLAYER = 'tagPlayer'


class Outbound:
    CONNECTED = 'connected'
    ROOM_CREATED = 'roomCreated'
    ERROR_CREATING = 'errorCreating'
    ROOM_JOINED = 'roomJoined'
    ERROR_JOINING = 'errorJoining'
    ROOM_LEFT = 'roomLeft'
    PLAYER_JOINED = 'playerJoined'
    PLAYER_LEFT = 'playerLeft'
    NEW_HOST = 'newHost'
    GAME_STARTED = 'gameStarted'
    GAME_START_FAILED = 'gameStartFailed'
    TIMER_UPDATE = 'timerUpdate'
    GAME_OVER = 'gameOver'
    PLAYER_MOVED = 'playerMoved'
    NEW_TAGGER = 'newTagger'


class CreateRoomRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    # None means the server default
    timer: Optional[StrictInt] = Field(default=None, gt=0)


class PlayerMovement(BaseModel):
    # NaN and Infinity have no JSON encoding
    model_config = ConfigDict(extra='ignore', allow_inf_nan=False)

    x: float
    y: float
    velocityX: float = 0.0
    velocityY: float = 0.0
    flipX: StrictBool = False


room_code_adapter = TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, pattern=r'^\d{4}$')])
connection_id_adapter = TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)])


def parse_create_room(data: Any) -> CreateRoomRequest:
    # createRoom may be sent with no settings at all
    return CreateRoomRequest.model_validate(data or {})


def parse_room_code(data: Any) -> str:
    if isinstance(data, dict):
        data = data.get('roomCode')
    if isinstance(data, int) and not isinstance(data, bool):
        data = str(data)
    return room_code_adapter.validate_python(data)


def parse_movement(data: Any) -> PlayerMovement:
    return PlayerMovement.model_validate(data)


def parse_target_id(data: Any) -> str:
    if isinstance(data, dict):
        data = data.get('targetId')
    return connection_id_adapter.validate_python(data)


class GameStarted(BaseModel):
    taggerId: str
    startTime: int
    duration: int


class GameOver(BaseModel):
    # Omitted on natural expiry
    reason: Optional[str] = None

    def payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class PlayerMoved(BaseModel):
    id: str
    x: float
    y: float
    velocityX: float
    velocityY: float
    flipX: bool


class NewTagger(BaseModel):
    newTaggerId: str
    oldTaggerId: Optional[str] = None
