import asyncio
import time

import fakeredis
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from app import create_app
from backend import RedisBackend
from errors import DeliveryError
from registry import SubscriptionRegistry


class FakeConnection:
    """Stands in for a Starlette WebSocket in session tests. Create it inside the running loop."""

    def __init__(self, fail_sends: bool = False, fail_accept: bool = False, scope=None):
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.fail_sends = fail_sends
        self.fail_accept = fail_accept
        self.scope = scope if scope is not None else {"type": "websocket", "extensions": {}}
        self.client = None
        self.accept_calls = 0
        self.sent = []
        self.close_calls = 0
        self.close_codes = []
        self.incoming = asyncio.Queue()

    async def accept(self):
        self.accept_calls += 1
        if self.fail_accept:
            raise RuntimeError("handshake aborted by peer")

    async def receive(self):
        return await self.incoming.get()

    async def send_text(self, data: str):
        if self.fail_sends:
            raise ConnectionResetError("connection reset by peer")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None):
        self.close_calls += 1
        self.close_codes.append(code)
        self.application_state = WebSocketState.DISCONNECTED

    def push_text(self, text: str):
        self.incoming.put_nowait({"type": "websocket.receive", "text": text})

    def hang_up(self):
        self.client_state = WebSocketState.DISCONNECTED
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": 1000})


class StubSession:
    """Minimal session for registry and broadcaster tests."""

    def __init__(self, name: str, fail: bool = False):
        self.session_id = name
        self.fail = fail
        self.received = []
        self.cancel_reason = None

    def deliver(self, payload: str):
        if self.fail:
            raise DeliveryError(f"{self.session_id} is gone")
        self.received.append(payload)

    def cancel(self, reason: str = "cancelled"):
        if self.cancel_reason is None:
            self.cancel_reason = reason
            return True
        return False

    def __repr__(self):
        return f"StubSession({self.session_id!r})"


async def wait_until(predicate, timeout: float = 1.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def backend(redis_client):
    return RedisBackend(redis_client)


@pytest.fixture
def registry():
    return SubscriptionRegistry()


@pytest.fixture
def application(redis_client):
    return create_app(redis_client)


@pytest.fixture
def client(application):
    # Entering the client keeps one event loop for HTTP calls and websockets alike
    with TestClient(application) as client:
        yield client
