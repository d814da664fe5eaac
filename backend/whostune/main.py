from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the WhosTune game server!'})


@main.route('/health')
def health():
    registry = current_app.extensions['room_registry']
    return jsonify({'status': 'ok', 'rooms': len(registry)})
