from __future__ import annotations

import logging

log = logging.getLogger(__name__)


class Vibrator:
    """Vibration motor driver."""

    available = True

    def pulse(self, duration_ms: int, amplitude: int) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        pass


class LogVibrator(Vibrator):
    """No motor attached: every pulse is accepted and only logged."""

    available = False

    def pulse(self, duration_ms: int, amplitude: int) -> None:
        log.debug("pulse %d ms @ amplitude %d", duration_ms, amplitude)
