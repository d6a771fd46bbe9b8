from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Union

from .. import config
from ..protocol import (
    CancelCommand,
    Command,
    DirectionCommand,
    PayloadError,
    VibrateCommand,
    clamp,
    clamp_amplitude,
    decode_peer,
)
from .timing import TimingPolicy, get_policy
from .vibrator import LogVibrator, Vibrator

log = logging.getLogger(__name__)

NO_DIRECTION = DirectionCommand(0.0, 0.0)


@dataclass(frozen=True)
class PulseParams:
    amplitude: int
    ratio: float


class PulseTask:
    """
    Repeating pulse on its own thread.

    Every cycle reads the latest params, pulses for the on-time, then waits
    on + off on the cancel event. Worst-case stop latency is one cycle.
    """

    def __init__(self, vibrator: Vibrator, params: PulseParams, policy: TimingPolicy, cycle_ms: int):
        self._vibrator = vibrator
        self._params = params
        self._policy = policy
        self._cycle_ms = cycle_ms
        self._cancel = threading.Event()
        self._thread = threading.Thread(target=self._run, name="pulse-task", daemon=True)

    @property
    def params(self) -> PulseParams:
        return self._params

    def update(self, params: PulseParams) -> None:
        # single reference swap; the loop picks it up next cycle
        self._params = params

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.ident is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._cancel.is_set():
            params = self._params
            timing = self._policy(params.ratio, self._cycle_ms)
            if timing.on_ms > 0:
                try:
                    self._vibrator.pulse(timing.on_ms, params.amplitude)
                except Exception as e:
                    log.error("Vibrator pulse failed: %s", e)
            if self._cancel.wait(timing.period_ms / 1000.0):
                break


class PulseTranslator:
    """
    Owns the single active pulse task of the wearable.

    Idle -> Pulsing     vibrate with amplitude > 0 and ratio > 0
    Pulsing -> Pulsing  vibrate again: old task canceled, new one started
    Pulsing -> Idle     cancel, or vibrate with amplitude/ratio <= 0
    Idle -> Idle        cancel (no-op)

    The heading is only reset by cancel; a zero vibrate keeps it.
    """

    def __init__(
        self,
        vibrator: Optional[Vibrator] = None,
        policy: Union[str, TimingPolicy] = config.PULSE_POLICY,
        cycle_ms: int = config.PULSE_CYCLE_MS,
        restart_on_update: bool = config.PULSE_RESTART_ON_UPDATE,
    ):
        self.vibrator = vibrator or LogVibrator()
        self.policy = get_policy(policy) if isinstance(policy, str) else policy
        self.cycle_ms = cycle_ms
        self.restart_on_update = restart_on_update
        self._task: Optional[PulseTask] = None
        self._heading = NO_DIRECTION
        self._lock = threading.Lock()
        if not self.vibrator.available:
            log.warning("No vibrator available, pulses will have no physical effect")

    @property
    def active(self) -> Optional[PulseTask]:
        return self._task

    @property
    def is_pulsing(self) -> bool:
        task = self._task
        return task is not None and not task.cancelled

    @property
    def heading(self) -> DirectionCommand:
        return self._heading

    def handle_message(self, path: str, payload: Optional[bytes]) -> Optional[Command]:
        try:
            command = decode_peer(path, payload)
        except PayloadError as e:
            log.warning("Invalid %s payload: %s", path, e)
            return None
        self.apply(command)
        return command

    def apply(self, command: Command) -> None:
        if isinstance(command, VibrateCommand):
            self.vibrate(command.amplitude, command.ratio)
        elif isinstance(command, DirectionCommand):
            self.set_direction(command)
        elif isinstance(command, CancelCommand):
            self.cancel()

    def vibrate(self, amplitude: int, ratio: float) -> bool:
        if amplitude <= 0 or ratio <= 0:
            self._stop_pulse()
            return False

        params = PulseParams(clamp_amplitude(amplitude), clamp(float(ratio), 0.0, 100.0))
        with self._lock:
            old = self._task
            if old is not None and not self.restart_on_update and old.is_alive():
                old.update(params)
                log.info("Pulse updated: amplitude=%d ratio=%.1f", params.amplitude, params.ratio)
                return True
            if old is not None:
                old.cancel()
            task = PulseTask(self.vibrator, params, self.policy, self.cycle_ms)
            self._task = task
            task.start()
        log.info("Pulse started: amplitude=%d ratio=%.1f", params.amplitude, params.ratio)
        return True

    def cancel(self) -> bool:
        self._heading = NO_DIRECTION
        return self._stop_pulse()

    def _stop_pulse(self) -> bool:
        with self._lock:
            task, self._task = self._task, None
        if task is None:
            return False
        task.cancel()
        self.vibrator.cancel()
        log.info("Pulse canceled")
        return True

    def set_direction(self, command: DirectionCommand) -> None:
        self._heading = command
        log.debug("Heading x=%.3f y=%.3f", command.x, command.y)

    def shutdown(self, timeout: float = 2.0) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            task.join(timeout)
