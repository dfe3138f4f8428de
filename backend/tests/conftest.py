import os
import sys
import pytest

# Ensure the backend root (containing the `roomofy` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from roomofy import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    ALLOWED_ORIGINS = ['http://localhost:5500']
    STARTING_BALANCE = 1000
    PLATFORM_ACCOUNT_ID = 'platform'
    PLATFORM_FEE_FRACTION = 0.20
    BOARD_SIZE = 8
    WIN_LENGTH = 3
    MAX_PLAYERS = 2


class EventRecorder:
    """Collects arena events per transport handle."""

    def __init__(self):
        self.events = []

    def __call__(self, handle, name, payload):
        self.events.append((handle, name, payload))

    def named(self, name, handle=None):
        return [p for h, n, p in self.events if n == name and (handle is None or h == handle)]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import roomofy.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def arena(flask_app):
    return flask_app.extensions['arena']


@pytest.fixture()
def recorder(arena):
    rec = EventRecorder()
    arena.events.subscribe(rec)
    yield rec
    arena.events.unsubscribe(rec)


@pytest.fixture()
def ledger(arena):
    return arena.ledger


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make(**kwargs):
        test_client = socketio.test_client(flask_app, namespace='/ws', **kwargs)
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
