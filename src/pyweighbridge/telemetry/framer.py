"""Line framing and weight extraction for scale telemetry.

Scale indicators stream line-oriented text at whatever cadence they like,
and the serial driver hands it over in chunks that have nothing to do with
line boundaries. :class:`TelemetryFramer` reassembles complete lines and
turns each one into at most one :class:`WeightSample`.

Weight extraction follows a single named policy, *max-value token
selection*: every signed integer or decimal token on the line is parsed
and the largest value wins. Indicator output usually mixes short status
fields (``ST``, ``GS``, sign flags, unit codes) with the reading, and the
reading is reliably the largest number on the line. This is a heuristic;
an indicator that prints e.g. a larger sequence counter next to the weight
will be misread.
"""

from __future__ import annotations

import codecs
import logging
import math
import re
from collections.abc import Callable
from datetime import datetime

from pyweighbridge.exceptions import StreamTerminatedError
from pyweighbridge.models._base import utcnow
from pyweighbridge.models.telemetry import WeightSample

_logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")
_LINE_SPLIT_RE = re.compile(r"\r?\n")

MAX_FRAGMENT_LENGTH = 4096
"""Longest unterminated fragment kept before it is discarded as noise."""


def numeric_tokens(line: str) -> list[float]:
    """Every maximal signed integer/decimal token on *line*, in order."""
    return [float(token) for token in _NUMBER_RE.findall(line)]


def extract_weight(line: str) -> float | None:
    """Apply max-value token selection to one line.

    Returns ``None`` when the line carries no numeric token.

    >>> extract_weight("ST,GS,+  20340 kg")
    20340.0
    >>> extract_weight("no data") is None
    True
    """
    tokens = numeric_tokens(line)
    if not tokens:
        return None
    return max(tokens)


class TelemetryFramer:
    """Reassemble lines from arbitrary chunks and emit weight samples.

    Feeding the same stream in any partition of chunks yields the same
    samples. Bytes are decoded incrementally so a multi-byte character split
    across two chunks is decoded once, intact.
    """

    def __init__(
        self,
        *,
        encoding: str = "utf-8",
        clock: Callable[[], datetime] = utcnow,
        max_fragment: int = MAX_FRAGMENT_LENGTH,
    ) -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._clock = clock
        self._max_fragment = max_fragment
        self._buffer = ""
        self._discarding = False
        self._closed = False
        self.malformed_lines = 0

    @property
    def pending(self) -> str:
        """Trailing fragment waiting for its line terminator."""
        return self._buffer

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: str | bytes) -> list[WeightSample]:
        """Accept one chunk and return samples for every line it completes."""
        if self._closed:
            raise StreamTerminatedError("telemetry stream already ended")

        text = self._decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        if not text:
            return []

        # A trailing "\r" may be the first half of "\r\n"; it stays buffered
        # because it is part of the unterminated fragment.
        lines = _LINE_SPLIT_RE.split(self._buffer + text)
        self._buffer = lines.pop()
        if self._discarding and lines:
            # Tail of a fragment that already overflowed.
            lines.pop(0)
            self.malformed_lines += 1
            self._discarding = False
        if len(self._buffer) > self._max_fragment:
            _logger.debug("Discarding %d chars of unterminated telemetry", len(self._buffer))
            self._buffer = ""
            self._discarding = True

        samples: list[WeightSample] = []
        for line in lines:
            sample = self._parse_line(line)
            if sample is not None:
                samples.append(sample)
        return samples

    def close(self) -> str:
        """Mark the stream ended and return the discarded trailing fragment.

        An unterminated fragment is never emitted as a sample.
        """
        self._decoder.decode(b"", final=True)
        fragment = self._buffer
        self._buffer = ""
        self._discarding = False
        self._closed = True
        if fragment:
            _logger.debug("Discarding unterminated telemetry fragment %r", fragment)
        return fragment

    def _parse_line(self, line: str) -> WeightSample | None:
        weight = extract_weight(line)
        if weight is None:
            self.malformed_lines += 1
            _logger.debug("Dropping telemetry line without a numeric token: %r", line)
            return None
        if not math.isfinite(weight):
            self.malformed_lines += 1
            _logger.debug("Dropping telemetry line with an out-of-range reading: %.80r", line)
            return None
        return WeightSample(value=weight, observed_at=self._clock(), raw_line=line)
