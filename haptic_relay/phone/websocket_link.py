from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from .. import config
from ..events import Connected, Disconnected, EventSource, MessageReceived, TransportError

log = logging.getLogger(__name__)

MANUAL_CLOSE_CODE = 1000
MANUAL_CLOSE_REASON = "Manual disconnect"


class _Session:
    def __init__(self, url: str):
        self.url = url
        self.ws: Any = None
        self.thread: Optional[threading.Thread] = None


class WebSocketLink(EventSource):
    """
    Secondary command stream, opened and closed on request.

    Each text frame becomes one MessageReceived on `topic`. There is no
    automatic reconnect.
    """

    def __init__(
        self,
        topic: str = config.WEBSOCKET_TOPIC,
        connect_fn: Callable[..., Any] = ws_connect,
        open_timeout: float = 10.0,
    ):
        super().__init__()
        self.topic = topic
        self._connect_fn = connect_fn
        self.open_timeout = open_timeout
        self._session: Optional[_Session] = None
        self._lock = threading.Lock()

    @property
    def url(self) -> Optional[str]:
        with self._lock:
            return self._session.url if self._session else None

    def connect(self, url: str) -> threading.Thread:
        with self._lock:
            old, self._session = self._session, _Session(url)
            session = self._session
        if old is not None:
            self._close(old)
        log.info("Opening websocket %s", url)
        session.thread = threading.Thread(
            target=self._reader, args=(session,), name="websocket-link", daemon=True
        )
        session.thread.start()
        return session.thread

    def disconnect(self) -> None:
        with self._lock:
            session, self._session = self._session, None
        if session is not None:
            self._close(session)
        self.emit(Disconnected("Disconnected"))

    def _is_current(self, session: _Session) -> bool:
        with self._lock:
            return self._session is session

    @classmethod
    def _close(cls, session: _Session) -> None:
        # the close handshake can take close_timeout; callers may be on the paho thread
        if session.ws is None:
            return
        threading.Thread(
            target=cls._close_now, args=(session,), name="websocket-close", daemon=True
        ).start()

    @staticmethod
    def _close_now(session: _Session) -> None:
        ws = session.ws
        if ws is None:
            return
        try:
            ws.close(code=MANUAL_CLOSE_CODE, reason=MANUAL_CLOSE_REASON)
        except Exception as e:
            log.debug("Closing websocket %s: %s", session.url, e)

    def _reader(self, session: _Session) -> None:
        try:
            ws = self._connect_fn(session.url, open_timeout=self.open_timeout)
        except Exception as e:
            log.error("Websocket connect to %s failed: %s", session.url, e)
            if self._is_current(session):
                self._forget(session)
                self.emit(TransportError(f"Error: {e}"))
            return

        session.ws = ws
        if not self._is_current(session):
            self._close_now(session)
            return
        self.emit(Connected())

        try:
            while True:
                message = ws.recv()
                if isinstance(message, str):
                    message = message.encode("utf-8")
                self.emit(MessageReceived(self.topic, bytes(message)))
        except ConnectionClosed as e:
            if not self._is_current(session):
                return
            self._forget(session)
            reason = e.rcvd.reason if e.rcvd is not None else ""
            log.info("Websocket %s closed: %s", session.url, reason or "no reason")
            self.emit(Disconnected(f"Closed: {reason}"))
        except Exception as e:
            if not self._is_current(session):
                return
            self._forget(session)
            log.error("Websocket %s failed: %s", session.url, e)
            self.emit(TransportError(f"Error: {e}"))

    def _forget(self, session: _Session) -> None:
        with self._lock:
            if self._session is session:
                self._session = None
