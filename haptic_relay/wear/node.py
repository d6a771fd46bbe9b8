from __future__ import annotations

import logging
import threading
from typing import Optional

import paho.mqtt.client as mqtt

from .. import config
from ..protocol import (
    PEER_PATHS,
    STATUS_OFFLINE,
    STATUS_ONLINE,
    parse_peer_topic,
    peer_topic,
    status_topic,
)
from .pulse import PulseTranslator

log = logging.getLogger(__name__)


class WearNode:
    """
    Wearable end of the peer channel.

    Publishes a retained "online" on connect (last will: "offline") and feeds
    every command received on its topics to the translator.
    """

    def __init__(
        self,
        translator: PulseTranslator,
        node_id: str = config.WEAR_NODE_ID,
        host: str = config.PEER_MQTT_HOST,
        port: int = config.PEER_MQTT_PORT,
        prefix: str = config.PEER_TOPIC_PREFIX,
        username: Optional[str] = config.MQTT_USERNAME,
        password: Optional[str] = config.MQTT_PASSWORD,
        tls: bool = config.MQTT_TLS,
        keepalive: int = config.MQTT_KEEPALIVE,
        reconnect_delay: float = config.RECONNECT_DELAY_S,
        client: Optional[mqtt.Client] = None,
    ):
        self.translator = translator
        self.node_id = node_id
        self.host = host
        self.port = port
        self.prefix = prefix
        self.keepalive = keepalive
        self.reconnect_delay = reconnect_delay
        self._stop = threading.Event()

        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=f"haptic-wear-{node_id}"
        )
        if username:
            self.client.username_pw_set(username, password)
        if tls:
            self.client.tls_set()
        self.client.will_set(self.status_topic, STATUS_OFFLINE, qos=1, retain=True)
        self.client.reconnect_delay_set(min_delay=reconnect_delay, max_delay=reconnect_delay)
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message

    @property
    def status_topic(self) -> str:
        return status_topic(self.prefix, self.node_id)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log.error("Wear node connect refused: %s", reason_code)
            return
        for path in PEER_PATHS:
            client.subscribe(peer_topic(self.prefix, self.node_id, path), qos=1)
        client.publish(self.status_topic, STATUS_ONLINE, qos=1, retain=True)
        log.info("Wear node %s online", self.node_id)

    def _on_message(self, client, userdata, msg):
        node_id, path = parse_peer_topic(self.prefix, msg.topic)
        if node_id != self.node_id or path not in PEER_PATHS:
            return
        self.translator.handle_message(path, bytes(msg.payload) if msg.payload else None)

    def run(self) -> None:
        while not self._stop.is_set():
            try:
                self.client.connect(self.host, self.port, keepalive=self.keepalive)
                self.client.loop_forever(retry_first_connection=False)
            except OSError as e:
                log.error(
                    "MQTT connection error: %s. Reconnecting in %s seconds...",
                    e, self.reconnect_delay,
                )
            if self._stop.wait(self.reconnect_delay):
                break

    def stop(self) -> None:
        self._stop.set()
        if self.client.is_connected():
            self.client.publish(self.status_topic, STATUS_OFFLINE, qos=1, retain=True)
        self.client.disconnect()
        self.translator.shutdown()
