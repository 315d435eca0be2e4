import json
import os
import sys
import pytest

# Ensure the backend root (containing the `roomserver` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from roomserver import create_app, socketio
from roomserver.services.rooms import RoomRegistry, SessionGateway


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROOM_DELETE_GRACE_SEC = 60
    HEARTBEAT_INTERVAL_SEC = 30
    ROOM_ID_LENGTH = 7
    PLAYER_ID_LENGTH = 9
    PLAYER_NAME_MAX_LENGTH = 48
    DEFAULT_PLAYER_NAME = 'Player'
    CORS_ORIGINS = '*'


class FakeConnection:
    """In-memory stand-in for a transport connection."""

    def __init__(self, name='conn', fail=False):
        self.id = name
        self.is_open = True
        self.fail = fail
        self.sent = []
        self.pings = []
        self.terminated = False

    def send(self, payload):
        if self.fail:
            raise ConnectionError('broken pipe')
        self.sent.append(json.loads(payload))

    def ping(self, callback):
        self.pings.append(callback)

    def terminate(self):
        self.terminated = True
        self.is_open = False

    def messages(self, kind=None):
        return [m for m in self.sent if kind is None or m['type'] == kind]

    def last(self, kind=None):
        found = self.messages(kind)
        return found[-1] if found else None

    def clear(self):
        self.sent = []


class ManualTasks:
    """Collects background tasks so tests decide when timers fire."""

    def __init__(self):
        self.tasks = []
        self.slept = []

    def start(self, fn, *args):
        self.tasks.append((fn, args))

    def sleep(self, seconds):
        self.slept.append(seconds)

    def run_all(self):
        pending, self.tasks = self.tasks, []
        for fn, args in pending:
            fn(*args)


@pytest.fixture()
def tasks():
    return ManualTasks()


@pytest.fixture()
def registry(tasks):
    return RoomRegistry(deletion_delay=60, start_task=tasks.start, sleep=tasks.sleep)


@pytest.fixture()
def gateway(registry):
    return SessionGateway(registry)


@pytest.fixture()
def make_conn():
    def _make(name='conn', fail=False):
        return FakeConnection(name, fail=fail)
    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
