from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    raw = config.get('ALLOWED_ORIGINS') or '*'
    if isinstance(raw, (list, tuple)):
        return list(raw)
    origins = [o.strip() for o in raw.split(',') if o.strip()]
    return '*' if origins in ([], ['*']) else origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room services live for the lifetime of the app; no state outside them
    from whostune.services import ProfileStore, RoomRegistry, RoomRules
    from whostune.services.quiz.scheduler import TaskScheduler
    from whostune.socketio_events import SocketIONotifier, register_socketio_handlers

    testing = flask_app.config.get('TESTING', False)
    scheduler = TaskScheduler(
        socketio,
        run_inline=testing and not flask_app.config.get('ENABLE_TIMERS_IN_TESTS', False),
    )
    registry = RoomRegistry(
        notifier=SocketIONotifier(socketio),
        scheduler=scheduler,
        rules=RoomRules.from_config(flask_app.config),
    )
    profiles = ProfileStore(max_profiles=flask_app.config.get('MAX_PROFILES', 1000))
    flask_app.extensions['room_registry'] = registry
    flask_app.extensions['profile_store'] = profiles

    from whostune.main import main
    flask_app.register_blueprint(main)

    from whostune.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    register_socketio_handlers(registry, profiles)

    return flask_app
