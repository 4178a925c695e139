import os
import sys
import pytest

# Ensure the project root (containing the `roundhub` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from roundhub import create_app, socketio
from roundhub.services.games.rules import RoundTimerDurations, RulesConfig, TimerDurations
from roundhub.services.games.scheduler import ManualTimer

GAME_NAMESPACE = '/games/321bang/play'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    TIMER_MODE = 'manual'
    TIMER_TICK_SEC = 0


class RecordingRoom:
    """Stands in for a Socket.IO room: remembers joins and emitted events."""

    def __init__(self, name='room'):
        self.name = name
        self.joined = []
        self.events = []

    def join(self, sid):
        self.joined.append(sid)

    def emit(self, event, payload):
        self.events.append((event, payload))

    @property
    def payloads(self):
        return [payload for _, payload in self.events]


def make_rules(**overrides):
    timers = overrides.pop('timer_durations', None) or TimerDurations(
        default=3,
        lobby=5,
        round=RoundTimerDurations(pre_play=5, play=30, post_play=5),
    )
    values = dict(rounds_to_win_match=3, score_to_win_round=1, min_players=2, max_players=2)
    values.update(overrides)
    return RulesConfig(timer_durations=timers, **values)


@pytest.fixture()
def rules():
    return make_rules()


@pytest.fixture()
def timer():
    return ManualTimer()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    for registry in application.extensions['roundhub']['registries'].values():
        registry.close()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def app_timer(flask_app):
    return flask_app.extensions['roundhub']['timer']


@pytest.fixture()
def connect(flask_app):
    """Open Socket.IO test clients on the game namespace; closed on teardown."""
    clients = []

    def _connect(session_id=None):
        query = f'sessionId={session_id}' if session_id else None
        test_client = socketio.test_client(flask_app, namespace=GAME_NAMESPACE, query_string=query)
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected(GAME_NAMESPACE):
                test_client.disconnect(namespace=GAME_NAMESPACE)
        except Exception:
            pass
