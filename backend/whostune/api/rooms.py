from flask import Blueprint, current_app, jsonify, request

from whostune.errors import GameError

rooms = Blueprint('rooms', __name__)


def _registry():
    return current_app.extensions['room_registry']


def _profiles():
    return current_app.extensions['profile_store']


@rooms.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': exc.message}), exc.status_code


@rooms.route('/room/create', methods=['POST'])
def create_room():
    """Create a lobby and return its code.

    Body: ``{"settings": {"questions": 5, "timer": 20}, "forceCode": "ABCD"}``,
    both optional. A taken ``forceCode`` falls back to a generated code.
    """
    data = request.get_json(silent=True) or {}
    settings = data.get('settings')
    if settings is not None and not isinstance(settings, dict):
        return jsonify({'error': 'settings must be an object'}), 400
    code = _registry().create_room(settings, data.get('forceCode'))
    return jsonify({'code': code})


@rooms.route('/room/<string:code>', methods=['GET'])
def get_room(code):
    return jsonify(_registry().get_room_summary(code))


@rooms.route('/session', methods=['POST'])
def register_session():
    """Store a player's music profile and return the session id to join with."""
    data = request.get_json(silent=True) or {}
    session_id = _profiles().register(data)
    profile = _profiles().get(session_id)
    return jsonify({'sessionId': session_id, 'profile': profile.to_dict()}), 201


@rooms.route('/session/<string:session_id>', methods=['GET'])
def get_session(session_id):
    profile = _profiles().get(session_id)
    if profile is None:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify(profile.to_dict())
