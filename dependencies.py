from starlette.requests import HTTPConnection

from backend import RedisBackend
from broadcaster import EventBroadcaster
from registry import SubscriptionRegistry


# Components live on app.state (see app.create_app) so each app instance,
# and each test, gets its own registry.
def get_backend(connection: HTTPConnection) -> RedisBackend:
    return connection.app.state.backend


def get_registry(connection: HTTPConnection) -> SubscriptionRegistry:
    return connection.app.state.registry


def get_broadcaster(connection: HTTPConnection) -> EventBroadcaster:
    return connection.app.state.broadcaster
