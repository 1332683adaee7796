from fastapi import APIRouter, Depends, WebSocket

from backend import RedisBackend, canonical_id
from constants import WS_CLOSE_INVALID_ROOM, WS_CLOSE_ROOM_NOT_FOUND, WS_CLOSE_INTERNAL_ERROR
from dependencies import get_backend, get_registry
from errors import InvalidIdentifier, RoomNotFound, StoreError
from logging_config import get_logger
from registry import SubscriptionRegistry
from session import RoomSession, reject, scoped_connection

logger = get_logger(__name__)

subscribe_router = APIRouter(tags=["subscribe"])


@subscribe_router.websocket("/subscribe/{room_id}")
async def subscribe(
    websocket: WebSocket,
    room_id: str,
    backend: RedisBackend = Depends(get_backend),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """Live event stream for one room.

    Invalid ids, unknown rooms and store failures are refused before the
    upgrade with HTTP 400, 404 and 500, or with close codes 4400, 4404 and
    1011 where the server can't send a denial response. Once accepted the socket
    stays open until the client hangs up or the session is cancelled.
    """
    client_host = websocket.client.host if websocket.client else "unknown"
    logger.info(f"WebSocket connection attempt for room: {room_id} from {client_host}")

    async with scoped_connection(websocket):
        try:
            room_id = canonical_id("room", room_id)
            backend.get_room(room_id)
        except InvalidIdentifier:
            logger.warning(f"WebSocket connection rejected: invalid room id {room_id!r}")
            await reject(websocket, 400, "Invalid room id", WS_CLOSE_INVALID_ROOM)
            return
        except RoomNotFound:
            logger.info(f"WebSocket connection rejected: Room {room_id} not found")
            await reject(websocket, 404, "Room not found", WS_CLOSE_ROOM_NOT_FOUND)
            return
        except StoreError as e:
            logger.error(f"WebSocket connection rejected: store error for room {room_id}: {e}", exc_info=True)
            await reject(websocket, 500, "Something went wrong", WS_CLOSE_INTERNAL_ERROR)
            return

        try:
            await websocket.accept()
        except Exception as e:
            logger.warning(f"Failed to upgrade connection for room {room_id}: {e}")
            return
        logger.info(f"WebSocket connection accepted for room: {room_id}")

        session = RoomSession(room_id, websocket)
        reason = await session.serve(registry)
        logger.info(f"Session {session.session_id} left room {room_id}: {reason}")
