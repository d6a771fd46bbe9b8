"""
Message shapes shared by the phone relay and the wearable.

Inbound (broker / websocket):
  vibration topic:  {"status": "on"|"off", "amplitude": int, "vibration_ratio": float}
  direction topic:  {"status": "KNOWN"|"UNKNOWN", "x": float, "y": float}
  command topic:    {"key": "websocket", "action": "connect"|"disconnect", "data": str?}

Peer channel (phone -> wearable):
  /vibrate    {"amplitude": int, "ratio": float}
  /direction  {"x": float, "y": float}
  /cancel     (no payload)

Over MQTT the peer paths live under <prefix>/<node_id>/, next to a retained
<prefix>/<node_id>/status topic carrying "online" / "offline".
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

AMPLITUDE_MIN = 1
AMPLITUDE_MAX = 255

PATH_VIBRATE = "/vibrate"
PATH_DIRECTION = "/direction"
PATH_CANCEL = "/cancel"
PEER_PATHS = (PATH_VIBRATE, PATH_DIRECTION, PATH_CANCEL)

STATUS_ONLINE = "online"
STATUS_OFFLINE = "offline"


class PayloadError(ValueError):
    """Payload could not be turned into a command."""


@dataclass(frozen=True)
class VibrateCommand:
    amplitude: int
    ratio: float


@dataclass(frozen=True)
class DirectionCommand:
    x: float
    y: float

    @property
    def is_unknown(self) -> bool:
        return self.x == 0 and self.y == 0


@dataclass(frozen=True)
class CancelCommand:
    pass


@dataclass(frozen=True)
class WebSocketControl:
    action: str
    data: Optional[str] = None


Command = Union[VibrateCommand, DirectionCommand, CancelCommand]


def clamp(v, lo, hi):
    return max(lo, min(hi, v))


def clamp_amplitude(amplitude: int) -> int:
    return int(clamp(amplitude, AMPLITUDE_MIN, AMPLITUDE_MAX))


# ------------------ DECODING ------------------

def decode_json(payload: Union[bytes, str, None]) -> Dict[str, Any]:
    if payload is None:
        raise PayloadError("empty payload")
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadError(f"payload is not UTF-8: {e}") from e
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as e:
        raise PayloadError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PayloadError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _require(data: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    raise PayloadError(f"missing field '{keys[0]}'")


def _as_int(v: Any, name: str) -> int:
    # bool is an int subclass; "true" is not an amplitude
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise PayloadError(f"field '{name}' is not a number: {v!r}")
    _as_float(v, name)
    return int(v)


def _as_float(v: Any, name: str) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise PayloadError(f"field '{name}' is not a number: {v!r}")
    try:
        f = float(v)
    except OverflowError as e:
        raise PayloadError(f"field '{name}' is out of range") from e
    if not math.isfinite(f):
        raise PayloadError(f"field '{name}' is not finite")
    return f


def decode_vibration(data: Dict[str, Any]) -> Optional[Command]:
    status = data.get("status")
    if status == "off":
        return CancelCommand()
    if status == "on":
        amplitude = _as_int(_require(data, "amplitude"), "amplitude")
        ratio = _as_float(_require(data, "vibration_ratio", "ratio"), "vibration_ratio")
        return VibrateCommand(amplitude, ratio)
    return None


def decode_direction(data: Dict[str, Any]) -> Optional[Command]:
    status = data.get("status")
    if status == "UNKNOWN":
        return CancelCommand()
    if status == "KNOWN":
        x = _as_float(_require(data, "x"), "x")
        y = _as_float(_require(data, "y"), "y")
        return DirectionCommand(x, y)
    return None


def decode_control(data: Dict[str, Any]) -> Optional[WebSocketControl]:
    if data.get("key") != "websocket":
        return None
    action = _require(data, "action")
    if not isinstance(action, str):
        raise PayloadError(f"field 'action' is not a string: {action!r}")
    url = data.get("data")
    return WebSocketControl(action, str(url) if url is not None else None)


# ------------------ PEER WIRE FORMAT ------------------

def encode_peer(command: Command) -> Tuple[str, Optional[bytes]]:
    if isinstance(command, VibrateCommand):
        body = {"amplitude": int(command.amplitude), "ratio": float(command.ratio)}
        return PATH_VIBRATE, json.dumps(body).encode("utf-8")
    if isinstance(command, DirectionCommand):
        body = {"x": float(command.x), "y": float(command.y)}
        return PATH_DIRECTION, json.dumps(body).encode("utf-8")
    if isinstance(command, CancelCommand):
        return PATH_CANCEL, None
    raise TypeError(f"not a peer command: {command!r}")


def decode_peer(path: str, payload: Optional[bytes]) -> Command:
    if path == PATH_CANCEL:
        return CancelCommand()
    if path == PATH_VIBRATE:
        data = decode_json(payload)
        return VibrateCommand(
            _as_int(_require(data, "amplitude"), "amplitude"),
            _as_float(_require(data, "ratio"), "ratio"),
        )
    if path == PATH_DIRECTION:
        data = decode_json(payload)
        return DirectionCommand(
            _as_float(_require(data, "x"), "x"),
            _as_float(_require(data, "y"), "y"),
        )
    raise PayloadError(f"unknown path '{path}'")


# ------------------ MQTT PEER TOPICS ------------------

def peer_topic(prefix: str, node_id: str, path: str) -> str:
    return f"{prefix}/{node_id}{path}"


def status_topic(prefix: str, node_id: str) -> str:
    return f"{prefix}/{node_id}/status"


def parse_peer_topic(prefix: str, topic: str) -> Tuple[Optional[str], Optional[str]]:
    """'wear/watch-1/vibrate' -> ('watch-1', '/vibrate'); (None, None) if foreign."""
    parts = [p for p in (topic or "").split("/") if p]
    root = [p for p in prefix.split("/") if p]
    if len(parts) != len(root) + 2 or parts[: len(root)] != root:
        return None, None
    return parts[len(root)], "/" + parts[-1]
