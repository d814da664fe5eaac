import os
import random
import sys
import pytest

# Ensure the backend root (containing the `whostune` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from whostune import create_app, socketio
from whostune.models import Track
from whostune.services.notifier import Notifier
from whostune.services.profiles import PlayerMusicProfile
from whostune.services.registry import RoomRegistry
from whostune.services.room import RoomRules


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    ALLOWED_ORIGINS = '*'
    LOG_LEVEL = 'DEBUG'


class RecordingNotifier(Notifier):
    """Keeps every outbound event so tests can assert on them."""

    def __init__(self):
        self.events = []
        self.subscriptions = {}

    def subscribe(self, sid, code):
        self.subscriptions.setdefault(code, set()).add(sid)

    def unsubscribe(self, sid, code):
        self.subscriptions.get(code, set()).discard(sid)

    def to_room(self, code, event, data, skip_sid=None):
        self.events.append(('room', code, event, data))

    def to_connection(self, sid, event, data):
        self.events.append(('private', sid, event, data))

    def named(self, event):
        return [e[3] for e in self.events if e[2] == event]

    def private(self, sid, event):
        return [e[3] for e in self.events if e[0] == 'private' and e[1] == sid and e[2] == event]

    def clear(self):
        self.events.clear()


def make_tracks(prefix, count, titled=True):
    return [
        Track(id=f'{prefix}-{i}', title=f'{prefix} song {i}' if titled else '', artist=f'{prefix} band')
        for i in range(count)
    ]


def music_profile(name, count=5, platform='spotify'):
    return PlayerMusicProfile(name=name, emoji='🎧', platform=platform, tracks=make_tracks(name, count))


def bare_profile(name):
    return PlayerMusicProfile(name=name, emoji='🎤')


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def registry(notifier):
    return RoomRegistry(notifier=notifier, rules=RoomRules(), rng=random.Random(7))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
