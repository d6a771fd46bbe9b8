from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .. import config
from ..events import EventSource, MessageReceived
from ..protocol import (
    CancelCommand,
    Command,
    DirectionCommand,
    PayloadError,
    VibrateCommand,
    WebSocketControl,
    decode_control,
    decode_direction,
    decode_json,
    decode_vibration,
)
from ..status import StatusBoard
from .peers import PeerDispatcher

log = logging.getLogger(__name__)


class CommandRelay:
    """
    Turns broker / websocket payloads into wearable commands.

    Topic routing:
      vibration topic, websocket stream -> vibrate / cancel
      direction topic                   -> direction / cancel
      command topic                     -> websocket connect / disconnect
    """

    def __init__(
        self,
        dispatcher: PeerDispatcher,
        status: StatusBoard,
        socket_link=None,
        vibration_topic: str = config.VIBRATION_TOPIC,
        direction_topic: str = config.DIRECTION_TOPIC,
        command_topic: str = config.COMMAND_TOPIC,
        websocket_topic: str = config.WEBSOCKET_TOPIC,
        default_websocket_url: Optional[str] = config.WEBSOCKET_URL,
    ):
        self.dispatcher = dispatcher
        self.status = status
        self.socket_link = socket_link
        self.default_websocket_url = default_websocket_url
        self._decoders: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            vibration_topic: decode_vibration,
            direction_topic: decode_direction,
            command_topic: decode_control,
            websocket_topic: decode_vibration,
        }

    def attach(self, source: EventSource) -> Callable[[], None]:
        def on_event(event):
            if isinstance(event, MessageReceived):
                self.handle_message(event.topic, event.payload)

        return source.subscribe(on_event)

    def handle_message(self, topic: str, payload: Optional[bytes]):
        if payload is None:
            return None
        self.status.record_payload(topic, payload.decode("utf-8", "replace"))

        decoder = self._decoders.get(topic)
        if decoder is None:
            log.debug("Ignoring message on %s", topic)
            return None

        try:
            result = decoder(decode_json(payload))
        except PayloadError as e:
            log.warning("Invalid payload on %s: %s", topic, e)
            self.status.notify(f"JSON error: {e}")
            return None

        if result is None:
            log.debug("Nothing to do for payload on %s", topic)
            return None
        if isinstance(result, WebSocketControl):
            self.control_websocket(result.action, result.data)
            return result
        self.emit(result)
        return result

    # ------------------ OUTBOUND ------------------
    def emit(self, command: Command) -> int:
        if isinstance(command, CancelCommand):
            self.status.notify("Sending Cancel")
        return self.dispatcher.send(command)

    def vibrate(self, amplitude: int, ratio: float) -> int:
        return self.emit(VibrateCommand(int(amplitude), float(ratio)))

    def direction(self, x: float, y: float) -> int:
        return self.emit(DirectionCommand(float(x), float(y)))

    def cancel(self) -> int:
        return self.emit(CancelCommand())

    # ------------------ SIDE CHANNEL ------------------
    def control_websocket(self, action: str, data: Optional[str] = None) -> bool:
        if self.socket_link is None:
            log.warning("Websocket %s requested but no websocket link is configured", action)
            return False

        if action == "connect":
            url = data or self.default_websocket_url
            if not url:
                log.warning("Websocket connect without a URL")
                self.status.notify("WebSocket connect without URL")
                return False
            self.socket_link.connect(url)
            return True

        if action == "disconnect":
            self.socket_link.disconnect()
            return True

        log.warning("Unknown websocket action %r", action)
        self.status.notify(f"Unknown websocket action: {action}")
        return False
