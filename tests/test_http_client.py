"""
Send-count tests through the real requests/urllib3 stack.

A local HTTP server counts hits per path, so anything the transport adapter
re-sends behind the dispatcher's back shows up in the counts.
"""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from site_agent.config import AgentConfig
from site_agent.connection import ConnectionManager
from site_agent.dispatcher import RequestDispatcher
from site_agent.http_client import create_session
from site_agent.outcomes import Accepted, Rejected, TransportError
from site_agent.throttle import ThrottleGate

from .conftest import StaticCoreData

INVALID_TOKEN = {"message": "Invalid token for url"}


class CollectorStub:
    """Routes: path -> (status, body), a callable(auth) returning one, or "drop"."""

    def __init__(self) -> None:
        self.routes: dict = {}
        self.hits: list = []
        self.auth: list = []
        self.url = ""


def _make_handler(stub: CollectorStub):
    class Handler(BaseHTTPRequestHandler):
        def log_message(self, *args) -> None:
            pass

        def do_POST(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            if length:
                self.rfile.read(length)
            stub.hits.append(self.path)
            stub.auth.append(self.headers.get("Authorization"))

            route = stub.routes.get(self.path, (404, {"message": "no route"}))
            if route == "drop":
                self.close_connection = True
                return

            if callable(route):
                route = route(self.headers.get("Authorization"))
            status, body = route
            payload = json.dumps(body).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

    return Handler


@pytest.fixture
def stub():
    stub = CollectorStub()
    server = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(stub))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    stub.url = f"http://127.0.0.1:{server.server_address[1]}/api"
    yield stub
    server.shutdown()
    server.server_close()


@pytest.fixture
def live(stub, tmp_path, options, transients):
    """Connection + dispatcher sharing one real session pointed at the stub."""
    config = AgentConfig(
        collector_url=stub.url,
        data_dir=str(tmp_path),
        connect_timeout=5,
        inline_timeout=5,
        background_timeout=5,
    )
    session = create_session()
    session.trust_env = False
    connection = ConnectionManager(
        config,
        options,
        transients,
        StaticCoreData(),
        session=session,
        gate=ThrottleGate(transients, options),
    )
    dispatcher = RequestDispatcher(config, connection, session=session)
    yield connection, dispatcher
    session.close()


class TestSingleSend:
    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_error_dispatched_once(self, stub, live, options, status) -> None:
        connection, dispatcher = live
        options.set("token", "old-token")
        stub.routes["/api/sites/v2/events"] = (status, {"message": "down"})

        outcome = dispatcher.dispatch("sites/v2/events", {"events": [1]})

        assert isinstance(outcome, Rejected)
        assert outcome.code == status
        assert stub.hits == ["/api/sites/v2/events"]

    def test_dropped_connection_is_transport_error_sent_once(self, stub, live, options) -> None:
        connection, dispatcher = live
        options.set("token", "old-token")
        stub.routes["/api/sites/v2/events"] = "drop"

        outcome = dispatcher.dispatch("sites/v2/events", {"events": [1]})

        assert isinstance(outcome, TransportError)
        assert stub.hits == ["/api/sites/v2/events"]

    def test_connect_posts_once_per_attempt(self, stub, live) -> None:
        connection, _ = live
        stub.routes["/api/sites/v2/connect"] = (503, {"message": "down"})

        assert connection.connect() is False

        assert stub.hits == ["/api/sites/v2/connect"]
        assert connection.gate.attempts == 1

    def test_connect_dropped_connection_posts_once(self, stub, live) -> None:
        connection, _ = live
        stub.routes["/api/sites/v2/connect"] = "drop"

        assert connection.connect() is False
        assert stub.hits == ["/api/sites/v2/connect"]


class TestReconnectCycle:
    def test_three_requests_at_most(self, stub, live, options) -> None:
        connection, dispatcher = live
        options.set("token", "old-token")
        stub.routes["/api/sites/v1/events"] = (403, INVALID_TOKEN)
        stub.routes["/api/sites/v2/reconnect"] = (200, {"token": "rotated"})

        outcome = dispatcher.dispatch("sites/v1/events", {"events": [1]})

        assert outcome == Rejected(403, "Forbidden")
        assert stub.hits == [
            "/api/sites/v1/events",
            "/api/sites/v2/reconnect",
            "/api/sites/v1/events",
        ]
        assert stub.auth == ["Bearer old-token", "Bearer old-token", "Bearer rotated"]

    def test_retry_success_is_returned(self, stub, live, options) -> None:
        connection, dispatcher = live
        options.set("token", "old-token")
        stub.routes["/api/sites/v2/reconnect"] = (201, {"token": "rotated"})
        stub.routes["/api/sites/v1/events"] = lambda auth: (
            (201, {"data": {"id": "n1"}}) if auth == "Bearer rotated" else (403, INVALID_TOKEN)
        )

        outcome = dispatcher.dispatch("sites/v1/events", {"events": [1]})

        assert isinstance(outcome, Accepted)
        assert outcome.body == {"data": {"id": "n1"}}
        assert len(stub.hits) == 3
