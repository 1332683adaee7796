from fastapi import APIRouter, Depends

from backend import RedisBackend, canonical_id
from broadcaster import EventBroadcaster
from dependencies import get_backend, get_broadcaster
from logging_config import get_logger
from routers.common import http_errors
from schemas import events
from schemas.messages import CreateMessageRequest, CreateMessageResponse, MessageResponse, ReactionResponse

logger = get_logger(__name__)

messages_router = APIRouter(prefix="/api/rooms/{room_id}/messages", tags=["messages"])

# Every write below broadcasts only after the store accepted it.


@messages_router.get("/", response_model=list[MessageResponse])
async def list_messages(room_id: str, backend: RedisBackend = Depends(get_backend)):
    with http_errors(f"List messages of room {room_id}"):
        room_id = canonical_id("room", room_id)
        messages = backend.list_messages(room_id)
    return [MessageResponse(**message) for message in messages]


@messages_router.post("/", response_model=CreateMessageResponse, status_code=201)
async def create_message(
    room_id: str,
    body: CreateMessageRequest,
    backend: RedisBackend = Depends(get_backend),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    with http_errors(f"Create message in room {room_id}"):
        room_id = canonical_id("room", room_id)
        message_id = backend.create_message(room_id, body.content)

    broadcaster.broadcast(room_id, events.message_created({"id": message_id, "room_id": room_id, "content": body.content}))
    return CreateMessageResponse(id=message_id)


@messages_router.get("/{message_id}", response_model=MessageResponse)
async def get_message(room_id: str, message_id: str, backend: RedisBackend = Depends(get_backend)):
    with http_errors(f"Get message {message_id} of room {room_id}"):
        room_id = canonical_id("room", room_id)
        message_id = canonical_id("message", message_id)
        message = backend.get_message(room_id, message_id)
    return MessageResponse(**message)


@messages_router.patch("/{message_id}/react", response_model=ReactionResponse)
async def react_to_message(
    room_id: str,
    message_id: str,
    backend: RedisBackend = Depends(get_backend),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    with http_errors(f"React to message {message_id} of room {room_id}"):
        room_id = canonical_id("room", room_id)
        message_id = canonical_id("message", message_id)
        count = backend.react_to_message(room_id, message_id)

    broadcaster.broadcast(room_id, events.reaction_updated(room_id, message_id, count))
    return ReactionResponse(count=count)


@messages_router.delete("/{message_id}/react", response_model=ReactionResponse)
async def remove_reaction(
    room_id: str,
    message_id: str,
    backend: RedisBackend = Depends(get_backend),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    with http_errors(f"Remove reaction from message {message_id} of room {room_id}"):
        room_id = canonical_id("room", room_id)
        message_id = canonical_id("message", message_id)
        count = backend.remove_reaction(room_id, message_id)

    broadcaster.broadcast(room_id, events.reaction_updated(room_id, message_id, count))
    return ReactionResponse(count=count)


@messages_router.patch("/{message_id}/answered")
async def mark_message_as_answered(
    room_id: str,
    message_id: str,
    backend: RedisBackend = Depends(get_backend),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    with http_errors(f"Mark message {message_id} of room {room_id} as answered"):
        room_id = canonical_id("room", room_id)
        message_id = canonical_id("message", message_id)
        backend.mark_answered(room_id, message_id)

    broadcaster.broadcast(room_id, events.message_answered(room_id, message_id))
    return {}
