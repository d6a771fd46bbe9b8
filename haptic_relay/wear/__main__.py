#!/usr/bin/env python3
import logging

from .. import config
from .node import WearNode
from .pulse import PulseTranslator

log = logging.getLogger("haptic-wear")


def main():
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    log.info(
        "Wear node %s, policy=%s cycle=%dms restart_on_update=%s",
        config.WEAR_NODE_ID, config.PULSE_POLICY, config.PULSE_CYCLE_MS,
        config.PULSE_RESTART_ON_UPDATE,
    )

    node = WearNode(PulseTranslator())
    try:
        node.run()
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        node.stop()


if __name__ == "__main__":
    main()
