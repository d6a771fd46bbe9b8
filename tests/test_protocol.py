import json

import pytest

from haptic_relay.protocol import (
    CancelCommand,
    DirectionCommand,
    PayloadError,
    VibrateCommand,
    WebSocketControl,
    clamp_amplitude,
    decode_control,
    decode_direction,
    decode_json,
    decode_peer,
    decode_vibration,
    encode_peer,
    parse_peer_topic,
    peer_topic,
    status_topic,
)


def test_decode_vibration_on():
    data = decode_json(b'{"status":"on","amplitude":150,"vibration_ratio":70.0}')
    assert decode_vibration(data) == VibrateCommand(150, 70.0)


def test_decode_vibration_accepts_ratio_alias():
    assert decode_vibration({"status": "on", "amplitude": 10, "ratio": 5}) == VibrateCommand(10, 5.0)


def test_decode_vibration_off():
    assert decode_vibration(decode_json(b'{"status":"off"}')) == CancelCommand()


def test_decode_vibration_missing_amplitude():
    with pytest.raises(PayloadError, match="amplitude"):
        decode_vibration(decode_json(b'{"status":"on"}'))


def test_decode_vibration_missing_ratio():
    with pytest.raises(PayloadError, match="vibration_ratio"):
        decode_vibration({"status": "on", "amplitude": 100})


def test_decode_vibration_rejects_non_numbers():
    with pytest.raises(PayloadError):
        decode_vibration({"status": "on", "amplitude": "loud", "vibration_ratio": 10})
    with pytest.raises(PayloadError):
        decode_vibration({"status": "on", "amplitude": True, "vibration_ratio": 10})


def test_decode_vibration_unknown_status_is_ignored():
    assert decode_vibration({"status": "maybe"}) is None
    assert decode_vibration({}) is None


def test_decode_float_amplitude_truncates():
    assert decode_vibration({"status": "on", "amplitude": 99.9, "vibration_ratio": 1}).amplitude == 99


def test_decode_direction():
    assert decode_direction({"status": "KNOWN", "x": 0.5, "y": -1}) == DirectionCommand(0.5, -1.0)
    assert decode_direction({"status": "UNKNOWN"}) == CancelCommand()
    with pytest.raises(PayloadError):
        decode_direction({"status": "KNOWN", "x": 1.0})


def test_decode_control():
    data = decode_json(b'{"key":"websocket","action":"connect","data":"wss://host/path"}')
    assert decode_control(data) == WebSocketControl("connect", "wss://host/path")
    assert decode_control({"key": "websocket", "action": "disconnect"}) == WebSocketControl("disconnect")
    assert decode_control({"key": "other", "action": "connect"}) is None
    with pytest.raises(PayloadError):
        decode_control({"key": "websocket"})


@pytest.mark.parametrize("raw", [b"not json", b"[1, 2]", b"\xff\xfe", None, b""])
def test_decode_json_errors(raw):
    with pytest.raises(PayloadError):
        decode_json(raw)


HUGE = "1" + "0" * 400


def test_decode_rejects_numbers_too_large_for_a_float():
    with pytest.raises(PayloadError):
        decode_vibration(decode_json(f'{{"status":"on","amplitude":{HUGE},"vibration_ratio":1}}'))
    with pytest.raises(PayloadError):
        decode_direction(decode_json(f'{{"status":"KNOWN","x":{HUGE},"y":0}}'))
    with pytest.raises(PayloadError):
        decode_peer("/vibrate", f'{{"amplitude":{HUGE},"ratio":50}}'.encode())


def test_decode_json_rejects_deep_nesting():
    with pytest.raises(PayloadError):
        decode_json(b"[" * 100000 + b"]" * 100000)


def test_vibrate_round_trip():
    cmd = VibrateCommand(150, 70.123456789)
    path, payload = encode_peer(cmd)
    assert path == "/vibrate"
    assert json.loads(payload) == {"amplitude": 150, "ratio": 70.123456789}
    assert decode_peer(path, payload) == cmd


def test_direction_and_cancel_wire_format():
    path, payload = encode_peer(DirectionCommand(1.5, -2.0))
    assert path == "/direction"
    assert decode_peer(path, payload) == DirectionCommand(1.5, -2.0)
    assert encode_peer(CancelCommand()) == ("/cancel", None)
    assert decode_peer("/cancel", None) == CancelCommand()


def test_decode_peer_errors():
    with pytest.raises(PayloadError):
        decode_peer("/explode", b"{}")
    with pytest.raises(PayloadError):
        decode_peer("/vibrate", b'{"vibrate": 50}')


def test_clamp_amplitude():
    assert clamp_amplitude(0) == 1
    assert clamp_amplitude(300) == 255
    assert clamp_amplitude(128) == 128


def test_peer_topics():
    assert peer_topic("wear", "watch-1", "/vibrate") == "wear/watch-1/vibrate"
    assert status_topic("wear", "watch-1") == "wear/watch-1/status"
    assert parse_peer_topic("wear", "wear/watch-1/cancel") == ("watch-1", "/cancel")
    assert parse_peer_topic("a/b", "a/b/n1/direction") == ("n1", "/direction")
    assert parse_peer_topic("wear", "other/watch-1/cancel") == (None, None)
    assert parse_peer_topic("wear", "wear/cancel") == (None, None)
