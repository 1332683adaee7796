from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    MESSAGE_CREATED = "message_created"
    REACTION_UPDATED = "message_reaction_updated"
    MESSAGE_ANSWERED = "message_answered"
    # Sent once to a new session, never broadcast
    SUBSCRIBED = "subscribed"


class RoomEvent(BaseModel):
    kind: EventKind
    room_id: str
    data: Dict[str, Any] = Field(default_factory=dict)


def message_created(message: dict) -> RoomEvent:
    return RoomEvent(
        kind=EventKind.MESSAGE_CREATED,
        room_id=message["room_id"],
        data={"id": message["id"], "content": message["content"]},
    )


def reaction_updated(room_id: str, message_id: str, count: int) -> RoomEvent:
    return RoomEvent(
        kind=EventKind.REACTION_UPDATED,
        room_id=room_id,
        data={"id": message_id, "count": count},
    )


def message_answered(room_id: str, message_id: str) -> RoomEvent:
    return RoomEvent(kind=EventKind.MESSAGE_ANSWERED, room_id=room_id, data={"id": message_id})
