from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Iterable, List, Optional

import paho.mqtt.client as mqtt

from .. import config
from ..events import Connected, Disconnected, EventSource, MessageReceived, TransportError

log = logging.getLogger(__name__)


def default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)


class MqttLink(EventSource):
    """
    Broker connection for the phone.

    Connect failures are retried after a fixed delay, forever. Every successful
    connect re-subscribes all topics, so drops handled by paho's own reconnect
    come back with the same subscriptions.
    """

    def __init__(
        self,
        topics: Iterable[str],
        host: str = config.MQTT_HOST,
        port: int = config.MQTT_PORT,
        username: Optional[str] = config.MQTT_USERNAME,
        password: Optional[str] = config.MQTT_PASSWORD,
        tls: bool = config.MQTT_TLS,
        keepalive: int = config.MQTT_KEEPALIVE,
        qos: int = config.MQTT_QOS,
        reconnect_delay: float = config.RECONNECT_DELAY_S,
        client_factory: Callable[[str], mqtt.Client] = default_client_factory,
        client_id: Optional[str] = None,
    ):
        super().__init__()
        self.topics: List[str] = list(topics)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.tls = tls
        self.keepalive = keepalive
        self.qos = qos
        self.reconnect_delay = reconnect_delay
        self._client_factory = client_factory
        self._client_id = client_id or f"haptic-phone-{uuid.uuid4()}"
        self._client: Optional[mqtt.Client] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------ CALLBACKS ------------------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log.error("MQTT connect refused: %s", reason_code)
            self.emit(TransportError(f"Failed: {reason_code}"))
            return
        log.info("Connected to MQTT broker %s:%s", self.host, self.port)
        for topic in self.topics:
            client.subscribe(topic, qos=self.qos)
            log.info("Subscribed to topic: %s (qos=%s)", topic, self.qos)
        self.emit(Connected())

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if self._stop.is_set():
            self.emit(Disconnected("Disconnected"))
            return
        log.warning("MQTT disconnected (%s), reconnecting...", reason_code)
        self.emit(Disconnected("Disconnected. Reconnecting..."))

    def _on_message(self, client, userdata, msg):
        self.emit(MessageReceived(msg.topic, bytes(msg.payload or b"")))

    def _build_client(self) -> mqtt.Client:
        client = self._client_factory(self._client_id)
        if self.username:
            client.username_pw_set(self.username, self.password)
        if self.tls:
            client.tls_set()
        client.reconnect_delay_set(min_delay=self.reconnect_delay, max_delay=self.reconnect_delay)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        return client

    # ------------------ LIFECYCLE ------------------
    def run(self) -> None:
        """Blocks until stop(); owns the connect/retry loop."""
        self._client = self._build_client()
        while not self._stop.is_set():
            try:
                self._client.connect(self.host, self.port, keepalive=self.keepalive)
                self._client.loop_forever(retry_first_connection=False)
            except OSError as e:
                log.error(
                    "MQTT connection error: %s. Reconnecting in %s seconds...",
                    e, self.reconnect_delay,
                )
                self.emit(TransportError(f"Failed: {e}"))
            if self._stop.wait(self.reconnect_delay):
                break

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="mqtt-link", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        self._stop.set()
        if self._client is not None:
            self._client.disconnect()
