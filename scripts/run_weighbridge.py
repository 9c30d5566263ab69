#!/usr/bin/env python3
"""Run a weighbridge session against the live scale.

Configuration comes from ``WEIGHBRIDGE_*`` environment variables (see
``WeighbridgeConfig.from_env``). The camera is outside this library: the
script reads the still that a camera daemon keeps refreshing at
``--snapshot``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import aiohttp

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyweighbridge import (  # noqa: E402
    HttpIdentificationClient,
    LedgerEntry,
    SerialTelemetrySource,
    TelemetryConnectionError,
    WeighbridgeConfig,
    WeighbridgeEngine,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Automated weighbridge session")
    parser.add_argument("--snapshot", type=Path, required=True, help="JPEG still refreshed by the camera")
    parser.add_argument("--material", default=None, help="Material id selected at start")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def _print_entry(entry: LedgerEntry) -> None:
    ticket = entry.ticket
    if ticket.total_cost is None:
        print(f"{entry.leg.upper():<8} {ticket.vehicle_identifier:<12} in={ticket.inbound_weight:.0f}")
    else:
        print(
            f"{entry.leg.upper():<8} {ticket.vehicle_identifier:<12} "
            f"net={ticket.net_weight:.0f} total={ticket.total_cost}"
        )


async def _run(args: argparse.Namespace) -> int:
    config = WeighbridgeConfig.from_env()
    if not config.identification_url:
        print("WEIGHBRIDGE_IDENTIFICATION_URL is not set", file=sys.stderr)
        return 2

    async def capture() -> bytes:
        return await asyncio.to_thread(args.snapshot.read_bytes)

    async with aiohttp.ClientSession() as http:
        engine = WeighbridgeEngine(
            config,
            source=SerialTelemetrySource(config.serial),
            identifier=HttpIdentificationClient(config, http),
            capture=capture,
            on_ticket=_print_entry,
        )
        if args.material:
            engine.select_material(args.material)
        try:
            async with engine:
                await engine.wait_stream_end()
        except TelemetryConnectionError as exc:
            print(f"Scale unavailable: {exc}", file=sys.stderr)
            return 1
    print("Telemetry stream ended.")
    return 0


def main() -> None:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
