"""Telemetry layer: raw scale stream to discrete weight samples."""

from pyweighbridge.telemetry.cell import WeightCell
from pyweighbridge.telemetry.framer import TelemetryFramer, extract_weight, numeric_tokens
from pyweighbridge.telemetry.source import IterableTelemetrySource, SerialTelemetrySource, TelemetrySource

__all__ = [
    "IterableTelemetrySource",
    "SerialTelemetrySource",
    "TelemetryFramer",
    "TelemetrySource",
    "WeightCell",
    "extract_weight",
    "numeric_tokens",
]
