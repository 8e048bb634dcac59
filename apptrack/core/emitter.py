"""
In-process publish/subscribe channel for emitted tracking payloads.

Handlers run synchronously inside publish(). A failing handler is logged and
skipped; publish() itself never raises.
"""
from __future__ import annotations
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, Tuple
import logging
import threading

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Topic:
    TRACKING = "RegisterForTrakingNotification"
    CRASH_REPORT = "RegisterForCrashTrakingNotification"

    ALL = (TRACKING, CRASH_REPORT)


class EventEmitter(Protocol):
    def publish(self, topic: str, payload: Any) -> Any: ...


class EventBus:
    def __init__(self, history: int = 100) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Handler]] = {}
        self._recent: Deque[Tuple[str, Any]] = deque(maxlen=history)

    def subscribe(self, topic: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(topic, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> bool:
        with self._lock:
            handlers = self._subscribers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
            return False

    def publish(self, topic: str, payload: Any) -> int:
        with self._lock:
            self._recent.append((topic, payload))
            # snapshot so handlers may (un)subscribe while being called
            handlers = list(self._subscribers.get(topic, []))

        called = 0
        for handler in handlers:
            try:
                handler(payload)
                called += 1
            except Exception:
                logger.warning("Subscriber %r failed on topic %s", handler, topic, exc_info=True)
        return called

    def recent(self, topic: Optional[str] = None, limit: int = 50) -> List[Tuple[str, Any]]:
        with self._lock:
            items = [item for item in self._recent if topic is None or item[0] == topic]
        return items[-limit:] if limit else []


class RecordingEmitter:
    """Keeps every published (topic, payload) pair in order."""

    def __init__(self) -> None:
        self.published: List[Tuple[str, Any]] = []

    def publish(self, topic: str, payload: Any) -> None:
        self.published.append((topic, payload))

    def payloads(self, topic: Optional[str] = None) -> List[Any]:
        return [p for t, p in self.published if topic is None or t == topic]
