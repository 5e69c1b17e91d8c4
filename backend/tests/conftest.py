import os
import random
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Optional, Set

import pytest

# Ensure the backend root (containing the `taggame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from taggame import create_app, socketio
from taggame.models import GameRules
from taggame.services.scheduler import IntervalTask
from taggame.services.sessions import SessionCoordinator


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    HOST = '127.0.0.1'
    PORT = 3000
    CORS_ORIGINS = '*'
    ROOM_CAPACITY = 6
    MIN_PLAYERS = 2
    SPAWN_X = 400
    SPAWN_Y = 300
    DEFAULT_ROUND_SEC = 120
    MAX_ROUND_SEC = 3600
    TICK_INTERVAL_SEC = 1
    TAG_IMMUNITY_MS = 500
    ROOM_CODE_ATTEMPTS = 100


class ManualScheduler:
    """Interval scheduler whose ticks are fired by the test."""

    def __init__(self):
        self.tasks = []

    def call_every(self, interval, callback):
        task = IntervalTask(interval)
        self.tasks.append((task, callback))
        return task

    @property
    def active(self):
        return [task for task, _ in self.tasks if not task.cancelled]

    def tick(self, times=1):
        for _ in range(times):
            for task, callback in list(self.tasks):
                if not task.cancelled:
                    callback(task)

    def fire(self, task):
        """Run a task's callback even if it was cancelled (a late tick)."""
        for known, callback in self.tasks:
            if known is task:
                callback(task)


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ScriptedRandom:
    """Random source that replays scripted codes and picks, then falls back to a seeded RNG."""

    def __init__(self, codes=(), picks=(), seed=0):
        self._codes = list(codes)
        self._picks = list(picks)
        self._fallback = random.Random(seed)

    def randint(self, a, b):
        if self._codes:
            return self._codes.pop(0)
        return self._fallback.randint(a, b)

    def choice(self, seq):
        if self._picks:
            wanted = self._picks.pop(0)
            if wanted in seq:
                return wanted
        return self._fallback.choice(seq)


@dataclass
class Emitted:
    event: str
    data: Any
    to: Optional[str]
    skip_sid: Optional[str]
    recipients: Set[str] = field(default_factory=set)


class RecordingBus:
    """In-memory bus recording every emit with its recipients at send time."""

    def __init__(self):
        self.events = []
        self.groups = defaultdict(set)

    def emit(self, event, data=None, to=None, skip_sid=None):
        if to in self.groups:
            recipients = set(self.groups[to])
        else:
            recipients = {to}
        recipients.discard(skip_sid)
        self.events.append(Emitted(event, data, to, skip_sid, recipients))

    def join(self, sid, group):
        self.groups[group].add(sid)

    def leave(self, sid, group):
        self.groups[group].discard(sid)
        if not self.groups[group]:
            del self.groups[group]

    def named(self, event):
        return [e for e in self.events if e.event == event]

    def received_by(self, sid):
        return [e for e in self.events if sid in e.recipients]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rng():
    return ScriptedRandom(codes=[1234])


@pytest.fixture()
def bus():
    return RecordingBus()


@pytest.fixture()
def coordinator(bus, scheduler, rng, clock):
    return SessionCoordinator(bus, scheduler, rules=GameRules(), rng=rng, clock=clock)


@pytest.fixture()
def flask_app(scheduler, rng, clock):
    application = create_app(TestConfig, scheduler=scheduler, rng=rng, clock=clock)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for connected Socket.IO test clients, each tagged with its sid."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        greeting = [pkt for pkt in test_client.get_received() if pkt['name'] == 'connected']
        test_client.sid = greeting[0]['args'][0]['id']
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
