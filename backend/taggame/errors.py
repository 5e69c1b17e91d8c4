"""Recoverable game errors.

None of these terminate a connection. The Socket.IO layer turns the ones
that are reported to clients into an error event addressed to the sender.
"""


class GameError(Exception):
    message = 'Game error.'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(GameError):
    message = 'Room not found.'


class RoomFull(GameError):
    message = 'Room is full.'


class RoomCodesExhausted(GameError):
    message = 'No room codes available.'


class StartFailed(GameError):
    NOT_HOST = 'NotHost'
    ALREADY_ACTIVE = 'AlreadyActive'
    NO_PLAYERS = 'NoPlayers'

    MESSAGES = {
        NOT_HOST: 'Only the host can start the game.',
        ALREADY_ACTIVE: 'Game already running.',
        NO_PLAYERS: 'Not enough players to start.',
    }

    def __init__(self, reason: str):
        super().__init__(self.MESSAGES.get(reason, 'Game could not be started.'))
        self.reason = reason
