"""Stability layer: continuous weight to one presence event per visit."""

from pyweighbridge.stability.detector import StabilityDetector
from pyweighbridge.stability.policy import DetectorPhase, DetectorState, StabilityThresholds, advance

__all__ = [
    "DetectorPhase",
    "DetectorState",
    "StabilityDetector",
    "StabilityThresholds",
    "advance",
]
