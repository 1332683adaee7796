from fastapi import APIRouter, Depends, HTTPException, Request

from backend import RedisBackend, canonical_id
from dependencies import get_backend, get_registry
from errors import InvalidIdentifier, RoomNotFound, StoreError
from logging_config import get_logger
from registry import SubscriptionRegistry
from schemas.rooms import CreateRoomRequest, CreateRoomResponse, RoomDetailsResponse, RoomResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@rooms_router.post("/", response_model=CreateRoomResponse, status_code=201)
async def create_room(room: CreateRoomRequest, request: Request, backend: RedisBackend = Depends(get_backend)):
    logger.info(f"Room creation request from {_client_host(request)}, theme: {room.theme}")
    try:
        room_id = backend.create_room(room.theme)
    except StoreError as e:
        logger.error(f"Error creating room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Something went wrong")
    logger.info(f"Room {room_id} created successfully")
    return CreateRoomResponse(id=room_id)


@rooms_router.get("/", response_model=list[RoomResponse])
async def list_rooms(backend: RedisBackend = Depends(get_backend)):
    try:
        rooms = backend.list_rooms()
    except StoreError as e:
        logger.error(f"Error listing rooms: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Something went wrong")
    return [RoomResponse(**room) for room in rooms]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(
    room_id: str,
    backend: RedisBackend = Depends(get_backend),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """
    Get a room together with the number of live listeners subscribed to it on this server.
    """
    try:
        room_id = canonical_id("room", room_id)
        room = backend.get_room(room_id)
    except InvalidIdentifier:
        logger.warning(f"Room details failed: invalid room id {room_id!r}")
        raise HTTPException(status_code=400, detail="Invalid room id")
    except RoomNotFound:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    except StoreError as e:
        logger.error(f"Error fetching room {room_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Something went wrong")

    return RoomDetailsResponse(**room, listener_count=registry.count(room_id))
