import threading
import time
from types import SimpleNamespace

import pytest

from haptic_relay.phone.peers import PeerChannel, PeerDispatcher
from haptic_relay.status import StatusBoard
from haptic_relay.wear.vibrator import Vibrator

SUCCESS = SimpleNamespace(is_failure=False)
REFUSED = SimpleNamespace(is_failure=True)


def wait_until(predicate, timeout=2.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class RecordingVibrator(Vibrator):
    def __init__(self):
        self.pulses = []
        self.cancels = 0
        self._lock = threading.Lock()

    def pulse(self, duration_ms, amplitude):
        with self._lock:
            self.pulses.append((duration_ms, amplitude))

    def cancel(self):
        self.cancels += 1


class FakeChannel(PeerChannel):
    def __init__(self, nodes=("watch-1",)):
        self.nodes = list(nodes)
        self.sent = []
        self.fail_nodes = set()
        self.list_error = None

    def connected_nodes(self):
        if self.list_error is not None:
            raise self.list_error
        return list(self.nodes)

    def send_message(self, node_id, path, payload):
        if node_id in self.fail_nodes:
            raise ConnectionError(f"{node_id} unreachable")
        self.sent.append((node_id, path, payload))


class FakeSocketLink:
    def __init__(self):
        self.opened = []
        self.closed = 0

    def connect(self, url):
        self.opened.append(url)

    def disconnect(self):
        self.closed += 1


@pytest.fixture
def vibrator():
    return RecordingVibrator()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def dispatcher(channel):
    return PeerDispatcher(channel)


@pytest.fixture
def status():
    return StatusBoard()


@pytest.fixture
def socket_link():
    return FakeSocketLink()
