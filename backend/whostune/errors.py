"""Errors raised by the room and quiz services.

Each error carries a user-facing message and the HTTP status the REST layer
answers with. The realtime gateway sends the message privately to the
requesting connection, except for ``Forbidden`` which is dropped silently.
"""


class GameError(Exception):
    status_code = 400
    default_message = 'Request could not be completed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'message': self.message}


class NotFound(GameError):
    status_code = 404
    default_message = 'Room not found'


class Forbidden(GameError):
    status_code = 403
    default_message = 'Only the host may do that'


class RoomFull(GameError):
    status_code = 409
    default_message = 'Room is full'


class GameInProgress(GameError):
    status_code = 409
    default_message = 'Game already in progress'


class InsufficientPlayers(GameError):
    default_message = 'At least 2 players with a connected music account are required'


class NoQuestionsAvailable(GameError):
    default_message = 'Not enough tracks to build a quiz'
