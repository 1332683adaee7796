import threading

from conftest import StubSession
from registry import SubscriptionRegistry

ROOM = "6f1c1c0e-1d7e-4e55-9c1c-0a3c4f7f2b11"
OTHER_ROOM = "0b8a2f4e-52a1-4a39-8f0e-3d7b9c1e2a44"


def test_register_and_snapshot(registry):
    first, second = StubSession("first"), StubSession("second")
    registry.register(ROOM, first)
    registry.register(ROOM, second)

    assert set(registry.snapshot(ROOM)) == {first, second}
    assert registry.count(ROOM) == 2
    assert registry.rooms() == [ROOM]


def test_snapshot_is_a_copy(registry):
    session = StubSession("s")
    registry.register(ROOM, session)

    snapshot = registry.snapshot(ROOM)
    snapshot.clear()
    registry.register(ROOM, StubSession("late"))

    assert snapshot == []
    assert registry.count(ROOM) == 2


def test_snapshot_of_unknown_room_is_empty(registry):
    assert registry.snapshot("nobody-here") == []
    assert registry.count("nobody-here") == 0


def test_unregister_is_idempotent(registry):
    session = StubSession("s")
    registry.register(ROOM, session)

    assert registry.unregister(ROOM, session) is True
    assert registry.unregister(ROOM, session) is False
    assert registry.unregister(OTHER_ROOM, StubSession("never-registered")) is False
    assert registry.snapshot(ROOM) == []


def test_empty_room_entry_is_harmless(registry):
    session = StubSession("s")
    registry.register(ROOM, session)
    registry.unregister(ROOM, session)

    assert registry.snapshot(ROOM) == []
    assert registry.rooms() == []
    assert registry.evict(ROOM) == 0


def test_session_belongs_to_one_room_at_a_time(registry):
    session = StubSession("s")
    registry.register(ROOM, session)
    registry.register(OTHER_ROOM, session)

    assert registry.snapshot(ROOM) == []
    assert registry.snapshot(OTHER_ROOM) == [session]
    assert registry.unregister(ROOM, session) is False
    assert registry.unregister(OTHER_ROOM, session) is True


def test_registering_twice_does_not_duplicate(registry):
    session = StubSession("s")
    registry.register(ROOM, session)
    registry.register(ROOM, session)

    assert registry.snapshot(ROOM) == [session]


def test_evict_cancels_every_session_of_the_room(registry):
    inside = [StubSession(f"in-{i}") for i in range(3)]
    outside = StubSession("out")
    for session in inside:
        registry.register(ROOM, session)
    registry.register(OTHER_ROOM, outside)

    assert registry.evict(ROOM, "room closed") == 3
    assert all(session.cancel_reason == "room closed" for session in inside)
    assert outside.cancel_reason is None


def test_evict_all(registry):
    sessions = [StubSession("a"), StubSession("b")]
    registry.register(ROOM, sessions[0])
    registry.register(OTHER_ROOM, sessions[1])

    assert registry.evict_all("server shutdown") == 2
    assert [s.cancel_reason for s in sessions] == ["server shutdown", "server shutdown"]


def test_concurrent_register_and_unregister_lose_nothing():
    registry = SubscriptionRegistry()
    workers = 8
    per_worker = 250
    kept = []
    kept_lock = threading.Lock()
    start = threading.Barrier(workers)

    def work(worker: int):
        room = ROOM if worker % 2 else OTHER_ROOM
        sessions = [StubSession(f"{worker}-{i}") for i in range(per_worker)]
        start.wait()
        for session in sessions:
            registry.register(room, session)
        # Every worker drops the even-numbered half of its own sessions
        for session in sessions[::2]:
            assert registry.unregister(room, session) is True
        with kept_lock:
            kept.extend((room, s) for s in sessions[1::2])

    threads = [threading.Thread(target=work, args=(w,)) for w in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert set(registry.snapshot(ROOM)) == {s for room, s in kept if room == ROOM}
    assert set(registry.snapshot(OTHER_ROOM)) == {s for room, s in kept if room == OTHER_ROOM}
    assert registry.count(ROOM) + registry.count(OTHER_ROOM) == workers * per_worker // 2
