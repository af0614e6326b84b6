"""
Shared fixtures: in-memory stores, a controllable clock, fake responses.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from site_agent.config import AgentConfig
from site_agent.connection import ConnectionManager
from site_agent.delivery import EventSender
from site_agent.dispatcher import RequestDispatcher
from site_agent.events import Event
from site_agent.throttle import ThrottleGate

COLLECTOR_URL = "https://collector.test/api"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryOptions:
    def __init__(self, initial: dict | None = None) -> None:
        self.data = dict(initial or {})

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class MemoryTransients:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.entries: dict = {}
        self.ttls: dict = {}

    def get(self, key):
        entry = self.entries.get(key)
        if entry is None or entry[1] <= self.clock():
            return None
        return entry[0]

    def set(self, key, value, ttl):
        self.entries[key] = (value, self.clock() + ttl)
        self.ttls[key] = ttl

    def delete(self, key):
        self.entries.pop(key, None)


class StaticCoreData:
    def collect(self) -> dict:
        return {"brand": "test", "url": "https://site.test", "hostname": "web-1"}


class StaticInventory:
    def collect(self) -> list:
        return [{"slug": "requests", "version": "2.31.0", "title": "HTTP for Humans."}]


def make_response(status: int, body=None, reason: str = "OK") -> requests.Response:
    """Build a real requests.Response with a JSON (or raw text) body."""
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    if body is None:
        content = b""
    elif isinstance(body, str):
        content = body.encode("utf-8")
    else:
        content = json.dumps(body).encode("utf-8")
    resp._content = content
    resp.encoding = "utf-8"
    return resp


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def options() -> MemoryOptions:
    return MemoryOptions()


@pytest.fixture
def transients(clock: FakeClock) -> MemoryTransients:
    return MemoryTransients(clock)


@pytest.fixture
def config(tmp_path) -> AgentConfig:
    return AgentConfig(collector_url=COLLECTOR_URL, data_dir=str(tmp_path))


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def gate(transients, options) -> ThrottleGate:
    return ThrottleGate(transients, options)


@pytest.fixture
def connection(config, options, transients, session, gate) -> ConnectionManager:
    return ConnectionManager(
        config,
        options,
        transients,
        StaticCoreData(),
        inventory=StaticInventory(),
        session=session,
        gate=gate,
    )


@pytest.fixture
def connected(connection, options) -> ConnectionManager:
    options.set("token", "old-token")
    return connection


@pytest.fixture
def dispatcher(config, connection, session) -> RequestDispatcher:
    return RequestDispatcher(config, connection, session=session)


@pytest.fixture
def sender(dispatcher) -> EventSender:
    return EventSender(dispatcher, StaticCoreData())


@pytest.fixture
def event() -> Event:
    return Event("admin", "plugin_search", {"type": "term", "query": "seo"}, created=1_700_000_000)
