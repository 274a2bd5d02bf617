from typing import Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = ['event_bus', 'COLLECTION_CHANGED', 'Event', 'EventBus']


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], object]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[object]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        # copy: handlers may unsubscribe while being notified
        for handler in list(self._subscribers[name]):
            results.append(handler(event, payload))
        return results

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)

    def subscriber_count(self, name: str) -> int:
        return len(self._subscribers.get(name, []))


# payload: {"user_id": ..., "change": "added" | "modified" | "removed", "id": ...}
COLLECTION_CHANGED = "COLLECTION_CHANGED"

event_bus = EventBus()
