from errors import DeliveryError
from logging_config import get_logger
from registry import SubscriptionRegistry
from schemas.events import RoomEvent

logger = get_logger(__name__)


class EventBroadcaster:
    """Fans room events out to the sessions registered for that room.

    Delivery only enqueues onto each session's outbound queue, so a broadcast
    never waits on a connection. Events reach a listener in the order
    ``broadcast`` was called for its room.
    """

    def __init__(self, registry: SubscriptionRegistry):
        self.registry = registry

    def broadcast(self, room_id: str, event: RoomEvent) -> int:
        """Deliver to every session in the room's current snapshot. Returns how many accepted it.

        A session that can't take the event is dropped from the registry and
        cancelled; the failure never reaches the caller.
        """
        payload = event.model_dump_json()
        sessions = self.registry.snapshot(room_id)
        delivered = 0
        for session in sessions:
            try:
                session.deliver(payload)
                delivered += 1
            except DeliveryError as e:
                logger.warning(f"Dropping session {session.session_id} from room {room_id}: {e}")
                self.registry.unregister(room_id, session)
                session.cancel("delivery failed")
        logger.debug(f"Broadcast {event.kind.value} to {delivered}/{len(sessions)} sessions in room {room_id}")
        return delivered
