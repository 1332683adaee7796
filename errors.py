"""Error taxonomy shared by the store, the live sessions and the routers."""


class RoomRelayError(Exception):
    pass


class InvalidIdentifier(RoomRelayError):
    """A room or message id that is not a valid UUID."""

    def __init__(self, kind: str, value: str):
        super().__init__(f"Invalid {kind} id: {value!r}")
        self.kind = kind
        self.value = value


class NotFoundError(RoomRelayError):
    pass


class RoomNotFound(NotFoundError):
    def __init__(self, room_id: str):
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class MessageNotFound(NotFoundError):
    def __init__(self, room_id: str, message_id: str):
        super().__init__(f"Message {message_id} not found in room {room_id}")
        self.room_id = room_id
        self.message_id = message_id


class StoreError(RoomRelayError):
    """The backing store failed; callers surface this as a server error."""


class DeliveryError(RoomRelayError):
    """An event could not be handed to a live session."""
