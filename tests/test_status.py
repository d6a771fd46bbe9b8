from haptic_relay.events import Connected, Disconnected, EventSource, MessageReceived, TransportError
from haptic_relay.status import StatusBoard


def test_listener_errors_do_not_stop_delivery():
    source = EventSource()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    source.subscribe(broken)
    source.subscribe(seen.append)
    source.emit(MessageReceived("t", b"x"))
    assert seen == [MessageReceived("t", b"x")]


def test_unsubscribe():
    source = EventSource()
    seen = []
    unsubscribe = source.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    source.emit(Connected())
    assert seen == []


def test_track_mirrors_connection_events():
    source = EventSource()
    board = StatusBoard()
    board.track("mqtt", source)

    source.emit(Connected())
    assert board.get("mqtt").connected
    assert board.get("mqtt").label == "Connected"

    source.emit(TransportError("Failed: timeout"))
    assert board.get("mqtt").label == "Failed: timeout"
    assert not board.get("mqtt").connected

    source.emit(Disconnected("Closed: bye"))
    assert board.get("mqtt").label == "Closed: bye"
    assert board.notices() == ["mqtt connected", "mqtt: Closed: bye"]


def test_notices_are_bounded():
    board = StatusBoard(max_notices=3)
    for i in range(5):
        board.notify(f"n{i}")
    assert board.notices() == ["n2", "n3", "n4"]


def test_snapshot_is_a_copy():
    board = StatusBoard()
    board.update("websocket", "Disconnected", False)
    snap = board.snapshot()
    snap["transports"]["websocket"]["connected"] = True
    assert board.get("websocket").connected is False
    assert board.get("missing") is None
