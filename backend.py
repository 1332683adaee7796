## Redis Schema / Keys
# See redis_keys.py for the key naming conventions.
#
# **Rooms**
# - `room:meta:{roomId}` hash holds the room; `rooms:index` orders rooms by creation time.
#
# **Messages**
# - `room:messages:{roomId}` lists message ids oldest first.
# - `message:{messageId}` hash holds the message, including its room id so a message
#   looked up through the wrong room is reported as missing.
import time
import uuid
from datetime import datetime
from functools import wraps
from typing import Optional

import redis

from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB
from errors import InvalidIdentifier, MessageNotFound, RoomNotFound, StoreError
from logging_config import get_logger
from redis_keys import REDIS_META_KEY, REDIS_ROOMS_INDEX, REDIS_MESSAGES_KEY, REDIS_MESSAGE_KEY

logger = get_logger(__name__)


def canonical_id(kind: str, value: str) -> str:
    """Parse a UUID in any accepted spelling and return its canonical text form."""
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdentifier(kind, value) from None


def new_id() -> str:
    return str(uuid.uuid4())


def create_redis_client() -> redis.Redis:
    logger.info(f"Creating Redis client for {REDIS_HOST}:{REDIS_PORT} db={REDIS_DB}")
    return redis.Redis(
        host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, db=REDIS_DB, decode_responses=True
    )


def translate_redis_errors(func):
    """Turn redis failures into StoreError so callers can tell them apart from lookups."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except redis.RedisError as e:
            logger.error(f"Redis error during {func.__name__}: {e}", exc_info=True)
            raise StoreError(f"{func.__name__} failed: {e}") from e
    return wrapper


def _room_from_hash(data: dict) -> dict:
    return {
        "id": data["id"],
        "theme": data.get("theme", ""),
        "created_at": data.get("created_at", ""),
    }


def _message_from_hash(data: dict) -> dict:
    return {
        "id": data["id"],
        "room_id": data["room_id"],
        "content": data.get("content", ""),
        "reaction_count": int(data.get("reaction_count", 0)),
        "answered": data.get("answered", "0") == "1",
        "created_at": data.get("created_at", ""),
    }


class RedisBackend:
    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis_client = redis_client if redis_client is not None else create_redis_client()
        logger.info("Initializing RedisBackend")

    @translate_redis_errors
    def ping(self) -> bool:
        return bool(self.redis_client.ping())

    @translate_redis_errors
    def create_room(self, theme: str) -> str:
        room_id = new_id()
        logger.info(f"Creating room {room_id}")
        key = REDIS_META_KEY.format(slug=room_id)
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.hset(key, mapping={
            "id": room_id,
            "theme": theme,
            "created_at": datetime.now().isoformat(),
        })
        pipe.zadd(REDIS_ROOMS_INDEX, {room_id: time.time()})
        pipe.execute()
        logger.debug(f"Room {room_id} created successfully with key: {key}")
        return room_id

    @translate_redis_errors
    def get_room(self, room_id: str) -> dict:
        logger.debug(f"Fetching room {room_id}")
        room_data = self.redis_client.hgetall(REDIS_META_KEY.format(slug=room_id))
        if not room_data:
            logger.debug(f"Room {room_id} not found in Redis")
            raise RoomNotFound(room_id)
        return _room_from_hash(room_data)

    @translate_redis_errors
    def list_rooms(self) -> list:
        room_ids = self.redis_client.zrange(REDIS_ROOMS_INDEX, 0, -1)
        pipe = self.redis_client.pipeline(transaction=False)
        for room_id in room_ids:
            pipe.hgetall(REDIS_META_KEY.format(slug=room_id))
        rooms = [_room_from_hash(data) for data in pipe.execute() if data]
        logger.debug(f"Listed {len(rooms)} rooms")
        return rooms

    @translate_redis_errors
    def create_message(self, room_id: str, content: str) -> str:
        self.get_room(room_id)
        message_id = new_id()
        key = REDIS_MESSAGE_KEY.format(message_id=message_id)
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.hset(key, mapping={
            "id": message_id,
            "room_id": room_id,
            "content": content,
            "reaction_count": 0,
            "answered": "0",
            "created_at": datetime.now().isoformat(),
        })
        pipe.rpush(REDIS_MESSAGES_KEY.format(slug=room_id), message_id)
        pipe.execute()
        logger.info(f"Message {message_id} created in room {room_id}")
        return message_id

    @translate_redis_errors
    def get_message(self, room_id: str, message_id: str) -> dict:
        logger.debug(f"Fetching message {message_id} from room {room_id}")
        data = self.redis_client.hgetall(REDIS_MESSAGE_KEY.format(message_id=message_id))
        if not data or data.get("room_id") != room_id:
            raise MessageNotFound(room_id, message_id)
        return _message_from_hash(data)

    @translate_redis_errors
    def list_messages(self, room_id: str) -> list:
        self.get_room(room_id)
        message_ids = self.redis_client.lrange(REDIS_MESSAGES_KEY.format(slug=room_id), 0, -1)
        pipe = self.redis_client.pipeline(transaction=False)
        for message_id in message_ids:
            pipe.hgetall(REDIS_MESSAGE_KEY.format(message_id=message_id))
        messages = [_message_from_hash(data) for data in pipe.execute() if data]
        logger.debug(f"Room {room_id} has {len(messages)} messages")
        return messages

    @translate_redis_errors
    def react_to_message(self, room_id: str, message_id: str) -> int:
        self.get_message(room_id, message_id)
        count = self.redis_client.hincrby(REDIS_MESSAGE_KEY.format(message_id=message_id), "reaction_count", 1)
        logger.debug(f"Message {message_id} reaction count is now {count}")
        return int(count)

    @translate_redis_errors
    def remove_reaction(self, room_id: str, message_id: str) -> int:
        self.get_message(room_id, message_id)
        key = REDIS_MESSAGE_KEY.format(message_id=message_id)

        def decrement(pipe) -> int:
            current = pipe.hget(key, "reaction_count")
            count = max(int(current or 0) - 1, 0)
            pipe.multi()
            pipe.hset(key, "reaction_count", count)
            return count

        count = self.redis_client.transaction(decrement, key, value_from_callable=True)
        logger.debug(f"Message {message_id} reaction count is now {count}")
        return count

    @translate_redis_errors
    def mark_answered(self, room_id: str, message_id: str) -> None:
        self.get_message(room_id, message_id)
        self.redis_client.hset(REDIS_MESSAGE_KEY.format(message_id=message_id), "answered", "1")
        logger.info(f"Message {message_id} in room {room_id} marked as answered")
