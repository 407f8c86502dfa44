import datetime as dt
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import clear_providers
from llm_gateway.breaker import CircuitBreakers
from llm_gateway.cache import ResponseCache
from llm_gateway.gateway import AiGateway, GatewayState
from storage.repository import SqliteSessionStore


class ScriptedProvider:
    """Provider adapter that replays scripted replies; exceptions are raised."""

    def __init__(self, *replies, name="fake"):
        self.name = name
        self.replies = list(replies) or ["ok"]
        self.calls = []

    def call(self, messages, max_tokens, temperature):
        self.calls.append([dict(m) for m in messages])
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply


class FakeClock:
    """Epoch-seconds clock for breakers and caches."""

    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeDateClock:
    """Datetime clock for the orchestrator and lifecycle manager."""

    def __init__(self, start=None):
        self.now = start or dt.datetime(2025, 1, 6, 9, 0, tzinfo=dt.timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now += dt.timedelta(**delta)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry():
    clear_providers()
    yield
    clear_providers()


@pytest.fixture
def store(tmp_db):
    return SqliteSessionStore(tmp_db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def date_clock():
    return FakeDateClock()


@pytest.fixture
def make_gateway(clock):
    built = []

    def _make(providers, **kwargs):
        state = kwargs.pop(
            "state",
            GatewayState(
                breakers=CircuitBreakers(threshold=3, recovery_s=300.0, clock=clock),
                cache=ResponseCache(ttl_s=600.0, max_entries=16, clock=clock),
            ),
        )
        gateway = AiGateway(providers, state=state, timeout_s=kwargs.pop("timeout_s", 2.0), **kwargs)
        built.append(gateway)
        return gateway

    yield _make
    for gateway in built:
        gateway.close()


@pytest.fixture
def scripted():
    return ScriptedProvider
