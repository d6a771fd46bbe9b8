from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

from .events import Connected, Disconnected, EventSource, TransportError

MAX_NOTICES = 50


@dataclass(frozen=True)
class ConnectionStatus:
    label: str
    connected: bool


class StatusBoard:
    """What the phone UI shows: transport status, last payloads, notices."""

    def __init__(self, max_notices: int = MAX_NOTICES):
        self._lock = threading.Lock()
        self._status: Dict[str, ConnectionStatus] = {}
        self._payloads: Dict[str, Dict[str, Any]] = {}
        self._notices: Deque[Dict[str, Any]] = deque(maxlen=max_notices)

    def update(self, transport: str, label: str, connected: bool) -> None:
        with self._lock:
            self._status[transport] = ConnectionStatus(label, connected)

    def get(self, transport: str) -> Optional[ConnectionStatus]:
        with self._lock:
            return self._status.get(transport)

    def record_payload(self, topic: str, text: str) -> None:
        with self._lock:
            self._payloads[topic] = {"payload": text, "ts": time.time()}

    def last_payload(self, topic: str) -> Optional[str]:
        with self._lock:
            entry = self._payloads.get(topic)
            return entry["payload"] if entry else None

    def notify(self, message: str) -> None:
        with self._lock:
            self._notices.append({"message": message, "ts": time.time()})

    def notices(self):
        with self._lock:
            return [n["message"] for n in self._notices]

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "transports": {
                    k: {"label": v.label, "connected": v.connected}
                    for k, v in self._status.items()
                },
                "payloads": {k: dict(v) for k, v in self._payloads.items()},
                "notices": list(self._notices),
            }

    def track(self, transport: str, source: EventSource) -> Callable[[], None]:
        """Mirror a transport's connection events into this board."""

        def on_event(event):
            if isinstance(event, Connected):
                self.update(transport, event.label, True)
                self.notify(f"{transport} connected")
            elif isinstance(event, Disconnected):
                self.update(transport, event.reason, False)
                self.notify(f"{transport}: {event.reason}")
            elif isinstance(event, TransportError):
                self.update(transport, event.reason, False)

        return source.subscribe(on_event)
