"""One live subscription: a WebSocket listening to exactly one room.

A session only ends through its cancellation event. Client hangups, failed
sends, dropped deliveries, evictions and server shutdown all set that event,
and the same teardown runs every time: unregister, then close the connection.

The session task is the only writer on its connection. Everything else hands
payloads to ``deliver``, which queues them for the writer.
"""
import asyncio
import threading
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional

from starlette.responses import PlainTextResponse
from starlette.websockets import WebSocket, WebSocketState

from constants import SESSION_QUEUE_SIZE
from errors import DeliveryError
from logging_config import get_logger
from schemas.events import EventKind, RoomEvent

if TYPE_CHECKING:
    from registry import SubscriptionRegistry

logger = get_logger(__name__)


async def close_connection(websocket: WebSocket) -> bool:
    """Close the websocket unless this side already closed it. Returns True if a close was sent."""
    if websocket.application_state == WebSocketState.DISCONNECTED:
        return False
    try:
        await websocket.close()
    except Exception as e:
        # The peer may already be gone; there is nothing left to release
        logger.debug(f"Error closing WebSocket: {e}")
    return True


async def reject(websocket: WebSocket, status_code: int, detail: str, close_code: int) -> None:
    """Refuse a subscription before the upgrade with an HTTP status.

    Servers without the websocket denial-response extension only get a close
    code, which they turn into a 403 handshake failure.
    """
    if "websocket.http.response" in (websocket.scope.get("extensions") or {}):
        await websocket.send_denial_response(PlainTextResponse(detail, status_code=status_code))
    else:
        await websocket.close(code=close_code, reason=detail)


@asynccontextmanager
async def scoped_connection(websocket: WebSocket):
    """Yield the websocket and close it on every exit path, rejections included."""
    try:
        yield websocket
    finally:
        await close_connection(websocket)


class RoomSession:
    def __init__(self, room_id: str, websocket: WebSocket, queue_size: int = SESSION_QUEUE_SIZE):
        self.session_id = str(uuid.uuid4())
        self.room_id = room_id
        self.websocket = websocket
        self.cancel_reason: Optional[str] = None
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._cancelled = asyncio.Event()
        self._cancel_lock = threading.Lock()
        self._loop = asyncio.get_running_loop()

    def __repr__(self) -> str:
        return f"RoomSession(session_id={self.session_id!r}, room_id={self.room_id!r})"

    @property
    def cancelled(self) -> bool:
        return self.cancel_reason is not None

    def cancel(self, reason: str = "cancelled") -> bool:
        """Fire the cancellation signal. Only the first call counts.

        Safe to call from any thread; off-loop calls hand the signal to the
        session's event loop.
        """
        with self._cancel_lock:
            if self.cancel_reason is not None:
                return False
            self.cancel_reason = reason
        if self._on_own_loop():
            self._cancelled.set()
        else:
            self._loop.call_soon_threadsafe(self._cancelled.set)
        logger.debug(f"Session {self.session_id} in room {self.room_id} cancelled: {reason}")
        return True

    def _on_own_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def deliver(self, payload: str) -> None:
        """Queue a payload for the writer without blocking.

        Raises DeliveryError when the session is already cancelled or its queue is full.
        """
        if self.cancel_reason is not None:
            raise DeliveryError(f"Session {self.session_id} is closed ({self.cancel_reason})")
        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            raise DeliveryError(f"Session {self.session_id} outbound queue is full") from None

    async def serve(self, registry: "SubscriptionRegistry") -> Optional[str]:
        """Register, stay live until cancelled, then unregister. Returns the cancel reason."""
        registry.register(self.room_id, self)
        try:
            welcome = RoomEvent(
                kind=EventKind.SUBSCRIBED,
                room_id=self.room_id,
                data={"session_id": self.session_id},
            )
            self.deliver(welcome.model_dump_json())
            return await self.run()
        finally:
            # Runs before any further await so it survives cancellation of this task
            registry.unregister(self.room_id, self)

    async def run(self) -> Optional[str]:
        tasks = [
            asyncio.create_task(self._read_until_disconnect()),
            asyncio.create_task(self._drain_outbox()),
            asyncio.create_task(self._cancelled.wait()),
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self.cancel("session ended")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        return self.cancel_reason

    async def _read_until_disconnect(self) -> None:
        # Clients don't publish over the socket; reads only detect hangups and keepalives
        try:
            while True:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(f"WebSocket disconnected normally for session {self.session_id} in room {self.room_id}")
                    self.cancel("client disconnected")
                    return
                if message.get("text") == "ping":
                    self.deliver("pong")
        except DeliveryError as e:
            logger.warning(f"Dropping session {self.session_id}: {e}")
            self.cancel("outbound queue full")
        except Exception as e:
            logger.warning(f"Error receiving from session {self.session_id} in room {self.room_id}: {e}")
            self.cancel("connection lost")

    async def _drain_outbox(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self.websocket.send_text(payload)
            except Exception as e:
                logger.warning(f"Error sending to session {self.session_id} in room {self.room_id}: {e}")
                self.cancel("send failed")
                return
