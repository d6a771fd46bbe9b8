from __future__ import annotations

import math
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException

from .. import config
from ..status import StatusBoard
from .relay import CommandRelay


def _number(payload: Dict[str, Any], key: str, default=None) -> float:
    v = payload.get(key, default)
    if v is None:
        raise HTTPException(400, f"{key} is required")
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise HTTPException(400, f"{key} must be a number")
    try:
        finite = math.isfinite(float(v))
    except OverflowError:
        finite = False
    if not finite:
        raise HTTPException(400, f"{key} is out of range")
    return v


def create_app(relay: CommandRelay, status: StatusBoard) -> FastAPI:
    app = FastAPI(title="haptic-relay phone")

    @app.get("/health")
    def health():
        return {"ok": True, "ts": int(time.time())}

    @app.get("/status")
    def get_status():
        snap = status.snapshot()
        try:
            peers: Optional[int] = len(relay.dispatcher.channel.connected_nodes())
        except Exception:
            peers = None
        snap["peers"] = peers
        return snap

    @app.post("/vibrate")
    def vibrate(payload: Optional[Dict[str, Any]] = None):
        payload = payload or {}
        amplitude = int(_number(payload, "amplitude", config.DEFAULT_AMPLITUDE))
        ratio = float(_number(payload, "ratio", config.DEFAULT_RATIO))
        sent = relay.vibrate(amplitude, ratio)
        return {"ok": True, "sent": sent, "amplitude": amplitude, "ratio": ratio}

    @app.post("/direction")
    def direction(payload: Dict[str, Any]):
        x = float(_number(payload, "x"))
        y = float(_number(payload, "y"))
        return {"ok": True, "sent": relay.direction(x, y)}

    @app.post("/cancel")
    def cancel():
        return {"ok": True, "sent": relay.cancel()}

    @app.post("/websocket")
    def websocket(payload: Dict[str, Any]):
        action = payload.get("action")
        if action not in ("connect", "disconnect"):
            raise HTTPException(400, "action must be 'connect' or 'disconnect'")
        data = payload.get("data")
        if not relay.control_websocket(action, data):
            raise HTTPException(409, f"websocket {action} not possible")
        return {"ok": True, "action": action}

    return app
