"""Edge-triggered stable-presence detector."""

from __future__ import annotations

import logging

from pyweighbridge.stability.policy import (
    ARMED,
    DetectorPhase,
    DetectorState,
    StabilityThresholds,
    advance,
    is_guard_skip,
)

_logger = logging.getLogger(__name__)


class StabilityDetector:
    """Emit one presence event per physical truck visit.

    Call :meth:`tick` on a fixed interval with the latest known weight.
    Bursts of samples between ticks collapse into whatever value is current
    at tick time.
    """

    def __init__(self, thresholds: StabilityThresholds | None = None) -> None:
        self._thresholds = thresholds or StabilityThresholds()
        self._state = ARMED

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def thresholds(self) -> StabilityThresholds:
        return self._thresholds

    @property
    def has_triggered(self) -> bool:
        return self._state.phase == DetectorPhase.FIRED

    def tick(self, weight: float, *, in_flight: bool = False) -> bool:
        """Advance one tick; return ``True`` exactly when the event fires."""
        previous = self._state
        if is_guard_skip(previous, weight, in_flight=in_flight, thresholds=self._thresholds):
            # Expected while identification is outstanding; not a failure.
            _logger.debug("Stability tick skipped, transaction in flight (weight=%s)", weight)

        self._state, fired = advance(previous, weight, in_flight=in_flight, thresholds=self._thresholds)

        if previous.phase != DetectorPhase.ARMED and self._state.phase == DetectorPhase.ARMED:
            _logger.debug("Weight %s below departure threshold, detector re-armed", weight)
        if fired:
            _logger.info("Truck present and stable at %s after %s ticks", weight, self._state.count)
        return fired

    def mark_triggered(self) -> None:
        """Treat the current visit as handled (manual capture)."""
        self._state = DetectorState(DetectorPhase.FIRED, self._state.count)

    def reset(self) -> None:
        """Force the detector back to armed (e.g. when telemetry ends)."""
        if self._state != ARMED:
            _logger.debug("Stability detector reset from %s", self._state.phase)
        self._state = ARMED
