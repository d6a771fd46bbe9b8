from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, List, Optional

import paho.mqtt.client as mqtt

from .. import config
from ..protocol import (
    STATUS_ONLINE,
    Command,
    encode_peer,
    peer_topic,
    status_topic,
)

log = logging.getLogger(__name__)


class PeerChannel:
    """Point-to-point link to paired wearables."""

    def connected_nodes(self) -> List[str]:
        raise NotImplementedError

    def send_message(self, node_id: str, path: str, payload: Optional[bytes]) -> None:
        raise NotImplementedError


class MqttPeerChannel(PeerChannel):
    """
    Wearables announce themselves with a retained "online" on
    <prefix>/<node>/status (last will "offline") and listen on
    <prefix>/<node>/<command>.
    """

    def __init__(
        self,
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
        self.host = host
        self.port = port
        self.prefix = prefix
        self.keepalive = keepalive
        self._nodes: Dict[str, bool] = {}
        self._lock = threading.Lock()

        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=f"haptic-peers-{uuid.uuid4()}"
        )
        if username:
            self.client.username_pw_set(username, password)
        if tls:
            self.client.tls_set()
        self.client.reconnect_delay_set(min_delay=reconnect_delay, max_delay=reconnect_delay)
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            log.error("Peer channel connect refused: %s", reason_code)
            return
        client.subscribe(status_topic(self.prefix, "+"), qos=1)
        log.info("Peer channel connected, watching %s", status_topic(self.prefix, "+"))

    def _on_message(self, client, userdata, msg):
        parts = msg.topic.split("/")
        if len(parts) < 2 or parts[-1] != "status":
            return
        node_id = parts[-2]
        online = bytes(msg.payload or b"").decode("utf-8", "replace").strip() == STATUS_ONLINE
        with self._lock:
            was = self._nodes.get(node_id)
            self._nodes[node_id] = online
        if was != online:
            log.info("Wearable %s is %s", node_id, "online" if online else "offline")

    def start(self) -> None:
        self.client.connect_async(self.host, self.port, keepalive=self.keepalive)
        self.client.loop_start()

    def close(self) -> None:
        try:
            self.client.loop_stop()
        finally:
            self.client.disconnect()

    def connected_nodes(self) -> List[str]:
        if not self.client.is_connected():
            raise ConnectionError("peer channel is not connected")
        with self._lock:
            return sorted(n for n, online in self._nodes.items() if online)

    def send_message(self, node_id: str, path: str, payload: Optional[bytes]) -> None:
        info = self.client.publish(peer_topic(self.prefix, node_id, path), payload, qos=1)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise ConnectionError(mqtt.error_string(info.rc))


class PeerDispatcher:
    """Sends each command to every wearable connected at that moment."""

    def __init__(self, channel: PeerChannel):
        self.channel = channel

    def send(self, command: Command) -> int:
        path, payload = encode_peer(command)
        try:
            nodes = self.channel.connected_nodes()
        except Exception as e:
            log.error("Could not list connected wearables: %s", e)
            return 0

        if not nodes:
            log.info("No connected wearable, %s not sent", path)
            return 0

        sent = 0
        for node_id in nodes:
            try:
                self.channel.send_message(node_id, path, payload)
                sent += 1
            except Exception as e:
                log.error("Sending %s to %s failed: %s", path, node_id, e)
        log.debug("%s delivered to %d/%d wearables", path, sent, len(nodes))
        return sent
