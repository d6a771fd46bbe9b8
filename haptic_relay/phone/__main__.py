#!/usr/bin/env python3
import logging
import threading

import uvicorn

from .. import config
from ..status import StatusBoard
from .api import create_app
from .mqtt_link import MqttLink
from .peers import MqttPeerChannel, PeerDispatcher
from .relay import CommandRelay
from .websocket_link import WebSocketLink

log = logging.getLogger("haptic-phone")


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    status = StatusBoard()
    channel = MqttPeerChannel()
    channel.start()

    mqtt_link = MqttLink([config.VIBRATION_TOPIC, config.DIRECTION_TOPIC, config.COMMAND_TOPIC])
    socket_link = WebSocketLink()
    status.update("mqtt", "Connecting...", False)
    status.track("mqtt", mqtt_link)
    status.track("websocket", socket_link)

    relay = CommandRelay(PeerDispatcher(channel), status, socket_link=socket_link)
    relay.attach(mqtt_link)
    relay.attach(socket_link)

    if config.STATUS_API_PORT:
        server = uvicorn.Server(uvicorn.Config(
            create_app(relay, status),
            host=config.STATUS_API_HOST,
            port=config.STATUS_API_PORT,
            log_level=config.LOG_LEVEL.lower(),
        ))
        threading.Thread(target=server.run, name="status-api", daemon=True).start()
        log.info("Status API on %s:%s", config.STATUS_API_HOST, config.STATUS_API_PORT)

    try:
        mqtt_link.run()
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        mqtt_link.stop()
        socket_link.disconnect()
        channel.close()


if __name__ == "__main__":
    main()
