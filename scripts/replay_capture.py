#!/usr/bin/env python3
"""Replay a captured scale telemetry file through the framer and detector.

Useful for checking the weight extraction and stability thresholds against
a real indicator's output before pointing the engine at the live port.
Each parsed sample is treated as one poll tick.

Example::

    python scripts/replay_capture.py capture.log --chunk-size 7 --entry 800
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyweighbridge.stability import StabilityDetector, StabilityThresholds  # noqa: E402
from pyweighbridge.telemetry import TelemetryFramer  # noqa: E402

_DEFAULTS = StabilityThresholds()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay scale telemetry through framing and stability detection.")
    parser.add_argument("capture", type=Path, help="Raw telemetry capture file")
    parser.add_argument("--chunk-size", type=int, default=64, help="Bytes per simulated serial read")
    parser.add_argument("--departure", type=float, default=_DEFAULTS.departure)
    parser.add_argument("--entry", type=float, default=_DEFAULTS.entry)
    parser.add_argument("--ticks", type=int, default=_DEFAULTS.ticks)
    parser.add_argument("--quiet", action="store_true", help="Only print stability events")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    data = args.capture.read_bytes()
    framer = TelemetryFramer()
    detector = StabilityDetector(StabilityThresholds(departure=args.departure, entry=args.entry, ticks=args.ticks))

    tick = 0
    events = 0
    for start in range(0, len(data), max(1, args.chunk_size)):
        for sample in framer.feed(data[start : start + args.chunk_size]):
            tick += 1
            fired = detector.tick(sample.value)
            if fired:
                events += 1
                print(f"[{tick:>6}] STABLE  {sample.value:>12.2f}  {sample.raw_line!r}")
            elif not args.quiet:
                print(f"[{tick:>6}] {detector.state.phase:<8}{sample.value:>12.2f}  {sample.raw_line!r}")
    leftover = framer.close()

    print()
    print(f"{tick} sample(s), {framer.malformed_lines} dropped line(s), {events} stability event(s)")
    if leftover:
        print(f"Unterminated trailing fragment discarded: {leftover!r}")


if __name__ == "__main__":
    main()
