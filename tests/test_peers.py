from types import SimpleNamespace
from unittest.mock import MagicMock

import paho.mqtt.client as mqtt
import pytest

from haptic_relay.phone.peers import MqttPeerChannel, PeerDispatcher
from haptic_relay.protocol import CancelCommand, VibrateCommand

from .conftest import REFUSED, SUCCESS


def _msg(topic, payload):
    return SimpleNamespace(topic=topic, payload=payload)


@pytest.fixture
def client():
    c = MagicMock()
    c.is_connected.return_value = True
    c.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)
    return c


@pytest.fixture
def peers(client):
    return MqttPeerChannel(prefix="wear", reconnect_delay=3, client=client)


def test_reconnect_delay_is_fixed(peers, client):
    client.reconnect_delay_set.assert_called_once_with(min_delay=3, max_delay=3)


def test_subscribes_to_status_on_connect(peers, client):
    peers._on_connect(client, None, {}, SUCCESS)
    client.subscribe.assert_called_once_with("wear/+/status", qos=1)


def test_refused_connect_does_not_subscribe(peers, client):
    peers._on_connect(client, None, {}, REFUSED)
    client.subscribe.assert_not_called()


def test_tracks_online_nodes(peers, client):
    peers._on_message(client, None, _msg("wear/watch-1/status", b"online"))
    peers._on_message(client, None, _msg("wear/watch-2/status", b"online"))
    peers._on_message(client, None, _msg("wear/watch-2/status", b"offline"))
    peers._on_message(client, None, _msg("wear/watch-3/vibrate", b"online"))
    assert peers.connected_nodes() == ["watch-1"]


def test_cleared_retained_status_counts_as_offline(peers, client):
    peers._on_message(client, None, _msg("wear/watch-1/status", b"online"))
    peers._on_message(client, None, _msg("wear/watch-1/status", b""))
    assert peers.connected_nodes() == []


def test_not_connected_raises(peers, client):
    client.is_connected.return_value = False
    with pytest.raises(ConnectionError):
        peers.connected_nodes()


def test_send_message_publishes_to_node_topic(peers, client):
    peers.send_message("watch-1", "/vibrate", b"{}")
    client.publish.assert_called_once_with("wear/watch-1/vibrate", b"{}", qos=1)


def test_send_message_failure_raises(peers, client):
    client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)
    with pytest.raises(ConnectionError):
        peers.send_message("watch-1", "/cancel", None)


def test_dispatcher_over_disconnected_channel_sends_nothing(peers, client):
    client.is_connected.return_value = False
    assert PeerDispatcher(peers).send(CancelCommand()) == 0
    client.publish.assert_not_called()


def test_dispatcher_without_peers(channel):
    channel.nodes = []
    assert PeerDispatcher(channel).send(VibrateCommand(1, 1.0)) == 0


def test_dispatcher_survives_enumeration_error(channel):
    channel.list_error = RuntimeError("node client gone")
    assert PeerDispatcher(channel).send(VibrateCommand(1, 1.0)) == 0
    assert channel.sent == []
