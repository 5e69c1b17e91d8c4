from flask import current_app, request
from flask_socketio import emit
from pydantic import ValidationError

from taggame import socketio
from taggame.errors import GameError, StartFailed
from taggame.messages import (
    Inbound,
    Outbound,
    parse_create_room,
    parse_movement,
    parse_room_code,
    parse_target_id,
)


def _coordinator():
    return current_app.extensions['tag_coordinator']


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def _rejected(event: str, exc: Exception) -> None:
    current_app.logger.warning(f"[bad-payload] event={event} sid={_get_sid()} error={exc}")


def handle_connect(auth=None):
    _coordinator().connect(_get_sid())
    emit(Outbound.CONNECTED, {'id': _get_sid()})


def handle_disconnect(reason=None):
    _coordinator().disconnect(_get_sid())


def handle_create_room(data=None):
    try:
        req = parse_create_room(data)
    except ValidationError as exc:
        _rejected(Inbound.CREATE_ROOM, exc)
        return
    coordinator = _coordinator()
    if req.timer is not None and req.timer > coordinator.rules.max_round_sec:
        _rejected(Inbound.CREATE_ROOM, ValueError(f"timer {req.timer}s above {coordinator.rules.max_round_sec}s"))
        return
    try:
        coordinator.create_room(_get_sid(), req.timer)
    except GameError as exc:
        emit(Outbound.ERROR_CREATING, exc.message)


def handle_join_room(data=None):
    try:
        code = parse_room_code(data)
    except ValidationError:
        # A malformed code can never name a live room
        emit(Outbound.ERROR_JOINING, 'Room not found.')
        return
    try:
        _coordinator().join_room(_get_sid(), code)
    except GameError as exc:
        emit(Outbound.ERROR_JOINING, exc.message)


def handle_leave_room(data=None):
    code = _coordinator().remove_member(_get_sid())
    if code is not None:
        emit(Outbound.ROOM_LEFT, {'roomCode': code})


def handle_start_game(data=None):
    try:
        _coordinator().start_round(_get_sid())
    except StartFailed as exc:
        current_app.logger.info(f"[start-failed] sid={_get_sid()} reason={exc.reason}")
        emit(Outbound.GAME_START_FAILED, exc.message)


def handle_player_movement(data=None):
    try:
        movement = parse_movement(data)
    except ValidationError as exc:
        _rejected(Inbound.PLAYER_MOVEMENT, exc)
        return
    _coordinator().update_movement(_get_sid(), movement)


def handle_tag_player(data=None):
    try:
        target_id = parse_target_id(data)
    except ValidationError as exc:
        _rejected(Inbound.TAG_PLAYER, exc)
        return
    _coordinator().attempt_tag(_get_sid(), target_id)


def handle_unknown(event, *args):
    current_app.logger.warning(f"[unknown-event] event={event} sid={_get_sid()}")


HANDLERS = {
    Inbound.CREATE_ROOM: handle_create_room,
    Inbound.JOIN_ROOM: handle_join_room,
    Inbound.LEAVE_ROOM: handle_leave_room,
    Inbound.START_GAME: handle_start_game,
    Inbound.PLAYER_MOVEMENT: handle_player_movement,
    Inbound.TAG_PLAYER: handle_tag_player,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on `namespace`."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
    socketio.on_event('*', handle_unknown, namespace=namespace)
