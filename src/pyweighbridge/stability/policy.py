"""Pure transition rules for stable-presence detection.

This module contains no timers and no I/O. The detector feeds it one
weight per poll tick and keeps the returned state.

The rule is a threshold-and-dwell approximation, not a statistical
stability test: it never compares samples with each other, it only asks
whether the weight stayed above a fixed floor for enough ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pyweighbridge._constants import DEPARTURE_THRESHOLD, ENTRY_THRESHOLD, STABILITY_TICKS


class DetectorPhase(StrEnum):
    ARMED = "armed"
    COUNTING = "counting"
    FIRED = "fired"


@dataclass(frozen=True, slots=True)
class StabilityThresholds:
    departure: float = DEPARTURE_THRESHOLD
    entry: float = ENTRY_THRESHOLD
    ticks: int = STABILITY_TICKS


@dataclass(frozen=True, slots=True)
class DetectorState:
    phase: DetectorPhase = DetectorPhase.ARMED
    count: int = 0


ARMED = DetectorState()


def advance(
    state: DetectorState,
    weight: float,
    *,
    in_flight: bool,
    thresholds: StabilityThresholds,
) -> tuple[DetectorState, bool]:
    """Evaluate one poll tick. Returns the next state and whether it fired.

    Rules, in order:
    1. below ``departure``: the truck has left, re-arm.
    2. above ``entry``, not yet fired, nothing in flight: count the tick.
       The tick on which the count reaches ``ticks`` fires, once.
    3. anything else (between thresholds, in flight, already fired):
       state is kept as is.
    """
    if weight < thresholds.departure:
        return ARMED, False

    if weight > thresholds.entry and state.phase != DetectorPhase.FIRED and not in_flight:
        count = state.count + 1
        if count >= thresholds.ticks:
            return DetectorState(DetectorPhase.FIRED, count), True
        return DetectorState(DetectorPhase.COUNTING, count), False

    return state, False


def is_guard_skip(state: DetectorState, weight: float, *, in_flight: bool, thresholds: StabilityThresholds) -> bool:
    """Whether a tick would have counted but for a transaction in flight."""
    return in_flight and weight > thresholds.entry and state.phase != DetectorPhase.FIRED
