from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Union

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Connected:
    label: str = "Connected"


@dataclass(frozen=True)
class Disconnected:
    reason: str = "Disconnected"


@dataclass(frozen=True)
class MessageReceived:
    topic: str
    payload: bytes


@dataclass(frozen=True)
class TransportError:
    reason: str


TransportEvent = Union[Connected, Disconnected, MessageReceived, TransportError]
Listener = Callable[[TransportEvent], None]


class EventSource:
    """Fan-out of transport events to subscribed listeners."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: TransportEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                log.exception("Listener failed on %s", type(event).__name__)
