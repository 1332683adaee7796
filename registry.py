"""Process-wide directory of live sessions per room.

One lock guards every room's listener set. It is held only while a set is
mutated or copied, never while anything is sent to a connection, so a slow
listener can't stall joins and leaves in unrelated rooms.
"""
import threading
from typing import TYPE_CHECKING, Dict, List, Set

from logging_config import get_logger

if TYPE_CHECKING:
    from session import RoomSession

logger = get_logger(__name__)


class SubscriptionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        # room_id -> sessions listening to it; emptied rooms keep their key
        self._rooms: Dict[str, Set["RoomSession"]] = {}
        # session -> the one room it is registered under
        self._membership: Dict["RoomSession", str] = {}

    def register(self, room_id: str, session: "RoomSession") -> None:
        with self._lock:
            previous = self._membership.get(session)
            if previous is not None and previous != room_id:
                self._rooms[previous].discard(session)
                logger.warning(f"Session {session.session_id} moved from room {previous} to {room_id}")
            self._rooms.setdefault(room_id, set()).add(session)
            self._membership[session] = room_id
            total = len(self._rooms[room_id])
        logger.info(f"Registered session {session.session_id} in room {room_id} (listeners: {total})")

    def unregister(self, room_id: str, session: "RoomSession") -> bool:
        """Remove a session; removing one that isn't registered is a no-op returning False."""
        with self._lock:
            listeners = self._rooms.get(room_id)
            if listeners is None or session not in listeners:
                return False
            listeners.discard(session)
            del self._membership[session]
            remaining = len(listeners)
        logger.info(f"Unregistered session {session.session_id} from room {room_id} (listeners: {remaining})")
        return True

    def snapshot(self, room_id: str) -> List["RoomSession"]:
        with self._lock:
            return list(self._rooms.get(room_id, ()))

    def count(self, room_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(room_id, ()))

    def rooms(self) -> List[str]:
        """Room ids that currently have at least one listener."""
        with self._lock:
            return [room_id for room_id, listeners in self._rooms.items() if listeners]

    def evict(self, room_id: str, reason: str = "evicted") -> int:
        """Cancel every session of a room from any thread. Each session unregisters itself while tearing down."""
        sessions = self.snapshot(room_id)
        for session in sessions:
            session.cancel(reason)
        if sessions:
            logger.info(f"Evicted {len(sessions)} sessions from room {room_id}: {reason}")
        return len(sessions)

    def evict_all(self, reason: str = "evicted") -> int:
        return sum(self.evict(room_id, reason) for room_id in self.rooms())
