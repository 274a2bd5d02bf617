from fintrack.events import Event, EventBus, COLLECTION_CHANGED
from datetime import datetime

OTHER_EVENT = "OTHER_EVENT"


def test_event_creation():
    event = Event(
        name=COLLECTION_CHANGED,
        ts=datetime.now().isoformat(),
        payload={"user_id": "u1", "change": "added", "id": "t1"}
    )
    assert event.name == COLLECTION_CHANGED
    assert event.payload["user_id"] == "u1"


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    results_collected = []

    def test_handler(event: Event, payload: dict) -> dict:
        results_collected.append(payload)
        return {"processed": True}

    bus.subscribe(COLLECTION_CHANGED, test_handler)
    results = bus.publish(COLLECTION_CHANGED, {"user_id": "u1"})

    assert len(results) == 1
    assert results[0]["processed"] is True
    assert results_collected == [{"user_id": "u1"}]


def test_publish_without_subscribers():
    bus = EventBus()
    assert bus.publish(COLLECTION_CHANGED, {"user_id": "u1"}) == []


def test_event_bus_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> dict:
        calls.append(payload)
        return {}

    bus.subscribe(COLLECTION_CHANGED, handler)
    bus.publish(COLLECTION_CHANGED, {"user_id": "u1"})
    assert len(calls) == 1
    assert bus.subscriber_count(COLLECTION_CHANGED) == 1

    bus.unsubscribe(COLLECTION_CHANGED, handler)
    bus.publish(COLLECTION_CHANGED, {"user_id": "u1"})
    assert len(calls) == 1
    assert bus.subscriber_count(COLLECTION_CHANGED) == 0


def test_handler_may_unsubscribe_during_publish():
    bus = EventBus()
    calls = []

    def once(event: Event, payload: dict) -> None:
        calls.append("once")
        bus.unsubscribe(COLLECTION_CHANGED, once)

    def always(event: Event, payload: dict) -> None:
        calls.append("always")

    bus.subscribe(COLLECTION_CHANGED, once)
    bus.subscribe(COLLECTION_CHANGED, always)

    bus.publish(COLLECTION_CHANGED, {})
    bus.publish(COLLECTION_CHANGED, {})

    assert calls == ["once", "always", "always"]


def test_different_event_types():
    bus = EventBus()
    changed, other = [], []

    bus.subscribe(COLLECTION_CHANGED, lambda e, p: changed.append(e.name))
    bus.subscribe(OTHER_EVENT, lambda e, p: other.append(e.name))

    bus.publish(COLLECTION_CHANGED, {})

    assert changed == [COLLECTION_CHANGED]
    assert other == []
