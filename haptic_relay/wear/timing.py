"""
Ratio -> on/off pulse timing.

Two policies, picked by name (PULSE_POLICY):

  proportional  on = cycle * ratio/100, off = cycle - on
  threshold     ratio >= 85: 500 ms on / 10 ms off (near continuous)
                otherwise:   50 ms on, off = (1 - ratio/85) * 1000, at least 50 ms

Both give denser pulsing for a higher ratio. Amplitude never enters here; it
only sets pulse strength.
"""
from __future__ import annotations

from typing import Callable, Dict, NamedTuple

from ..protocol import clamp

DEFAULT_CYCLE_MS = 1000

THRESHOLD_RATIO = 85.0
THRESHOLD_ON_MS = 500
THRESHOLD_OFF_MS = 10
BELOW_ON_MS = 50
BELOW_MIN_OFF_MS = 50


class PulseTiming(NamedTuple):
    on_ms: int
    off_ms: int

    @property
    def period_ms(self) -> int:
        return self.on_ms + self.off_ms


def proportional_timing(ratio: float, cycle_ms: int = DEFAULT_CYCLE_MS) -> PulseTiming:
    ratio = clamp(ratio, 0.0, 100.0)
    cycle_ms = max(1, int(cycle_ms))
    on_ms = int(round(cycle_ms * (ratio / 100.0)))
    return PulseTiming(on_ms, cycle_ms - on_ms)


def threshold_timing(ratio: float, cycle_ms: int = DEFAULT_CYCLE_MS) -> PulseTiming:
    ratio = clamp(ratio, 0.0, 100.0)
    if ratio >= THRESHOLD_RATIO:
        return PulseTiming(THRESHOLD_ON_MS, THRESHOLD_OFF_MS)
    off_ms = int((1.0 - ratio / THRESHOLD_RATIO) * 1000)
    return PulseTiming(BELOW_ON_MS, max(BELOW_MIN_OFF_MS, off_ms))


TimingPolicy = Callable[..., PulseTiming]

POLICIES: Dict[str, TimingPolicy] = {
    "proportional": proportional_timing,
    "threshold": threshold_timing,
}


def get_policy(name: str) -> TimingPolicy:
    try:
        return POLICIES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown pulse policy {name!r}, expected one of {sorted(POLICIES)}") from None
