"""Internal constants shared across the library."""

from __future__ import annotations

# ------------------------------------------------------------------
# Stability detection (reference values, weight units as reported)
# ------------------------------------------------------------------

DEPARTURE_THRESHOLD = 100.0
ENTRY_THRESHOLD = 500.0
STABILITY_TICKS = 10
POLL_INTERVAL_S = 0.2

# ------------------------------------------------------------------
# Serial line defaults
# ------------------------------------------------------------------

DEFAULT_SERIAL_PORT = "/dev/ttyUSB0"
DEFAULT_BAUD_RATE = 9600
DEFAULT_DATA_BITS = 8
DEFAULT_STOP_BITS = 1
DEFAULT_PARITY = "none"
VALID_PARITIES: frozenset[str] = frozenset({"none", "even", "odd", "mark", "space"})

# ------------------------------------------------------------------
# Identification sentinels
# ------------------------------------------------------------------

UNKNOWN_IDENTIFIER = "UNKNOWN"
"""Returned when no identifier could be recognized in the image."""

MANUAL_CHECK_IDENTIFIER = "MANUAL_CHECK"
"""Returned when the identification call failed or needs operator review."""

SENTINEL_IDENTIFIERS: frozenset[str] = frozenset({UNKNOWN_IDENTIFIER, MANUAL_CHECK_IDENTIFIER})

USER_AGENT = "pyweighbridge/1"
