import functools
import logging

from flask import request
from flask_socketio import emit

from whostune import socketio
from whostune.errors import Forbidden, GameError, NotFound
from whostune.services.notifier import Notifier
from whostune.services.profiles import ProfileStore
from whostune.services.registry import RoomRegistry


logger = logging.getLogger(__name__)

NAMESPACE = '/'


def socket_room(code: str) -> str:
    return f"room:{code}"


class SocketIONotifier(Notifier):
    """Delivers room events through the Socket.IO server."""

    def __init__(self, sio, namespace: str = NAMESPACE):
        self.socketio = sio
        self.namespace = namespace

    def subscribe(self, sid, code):
        self.socketio.server.enter_room(sid, socket_room(code), namespace=self.namespace)

    def unsubscribe(self, sid, code):
        self.socketio.server.leave_room(sid, socket_room(code), namespace=self.namespace)

    def to_room(self, code, event, data, skip_sid=None):
        self.socketio.emit(event, data, to=socket_room(code), skip_sid=skip_sid, namespace=self.namespace)

    def to_connection(self, sid, event, data):
        self.socketio.emit(event, data, to=sid, namespace=self.namespace)


def _handles_game_errors(handler):
    """Run a handler with the caller's sid; refusals go back to the caller only."""

    @functools.wraps(handler)
    def wrapper(self, data=None):
        sid = request.sid
        try:
            return handler(self, sid, data if isinstance(data, dict) else {})
        except Forbidden:
            # Non-host attempts at host actions are ignored
            logger.debug(f"[ws-forbidden] sid={sid} event={handler.__name__}")
        except GameError as exc:
            logger.info(f"[ws-error] sid={sid} event={handler.__name__} message={exc.message}")
            emit('error', exc.to_dict())
        return None

    return wrapper


class RealtimeGateway:
    """Maps inbound Socket.IO events onto registry and room calls."""

    def __init__(self, registry: RoomRegistry, profiles: ProfileStore):
        self.registry = registry
        self.profiles = profiles

    def _room(self, sid, data):
        code = data.get('roomCode')
        if code:
            return self.registry.get(code)
        room = self.registry.room_for_connection(sid)
        if room is None:
            raise NotFound()
        return room

    def on_connect(self, auth=None):
        logger.info(f"[ws-connect] sid={request.sid}")

    def on_disconnect(self, *args):
        sid = request.sid
        logger.info(f"[ws-disconnect] sid={sid}")
        self.registry.disconnect(sid)

    @_handles_game_errors
    def on_join(self, sid, data):
        session_id = data.get('sessionId')
        profile = self.profiles.resolve(session_id, data.get('playerName'), data.get('playerEmoji'))
        self.registry.join(data.get('roomCode'), sid, session_id, profile)

    @_handles_game_errors
    def on_update_settings(self, sid, data):
        self._room(sid, data).update_settings(sid, data.get('settings'))

    @_handles_game_errors
    def on_start_game(self, sid, data):
        self._room(sid, data).start_game(sid)

    @_handles_game_errors
    def on_submit_answer(self, sid, data):
        room = self.registry.room_for_connection(sid)
        if room is None:
            return
        room.submit_answer(sid, data.get('answeredPlayerId'))

    @_handles_game_errors
    def on_next_question(self, sid, data):
        self._room(sid, data).advance_question(sid)

    @_handles_game_errors
    def on_play_again(self, sid, data):
        self.registry.replay(self._room(sid, data).code, sid)


EVENTS = (
    ('join-room', 'on_join'),
    ('join', 'on_join'),
    ('update-settings', 'on_update_settings'),
    ('start-game', 'on_start_game'),
    ('submit-answer', 'on_submit_answer'),
    ('next-question', 'on_next_question'),
    ('play-again', 'on_play_again'),
)


def register_socketio_handlers(registry: RoomRegistry, profiles: ProfileStore,
                               namespace: str = NAMESPACE) -> RealtimeGateway:
    """Register the gateway's Socket.IO event handlers on ``namespace``."""
    gateway = RealtimeGateway(registry, profiles)
    socketio.on_event('connect', gateway.on_connect, namespace=namespace)
    socketio.on_event('disconnect', gateway.on_disconnect, namespace=namespace)
    for event, attr in EVENTS:
        socketio.on_event(event, getattr(gateway, attr), namespace=namespace)
    return gateway
