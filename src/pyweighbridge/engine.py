"""High-level async weighbridge transaction engine."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any

from pyweighbridge.config import WeighbridgeConfig
from pyweighbridge.identification.client import Identifier, identify_safely
from pyweighbridge.ledger.policy import SentinelPolicy
from pyweighbridge.ledger.store import LedgerEntry, TicketLedger
from pyweighbridge.models._base import utcnow
from pyweighbridge.models.material import DEFAULT_MATERIALS, Material, find_material
from pyweighbridge.stability.detector import StabilityDetector
from pyweighbridge.stability.policy import StabilityThresholds
from pyweighbridge.telemetry.cell import WeightCell
from pyweighbridge.telemetry.framer import TelemetryFramer
from pyweighbridge.telemetry.source import TelemetrySource

_logger = logging.getLogger(__name__)

CaptureFn = Callable[[], Awaitable[bytes]]
"""Returns one JPEG still of the vehicle on the scale."""


class WeighbridgeEngine:
    """Drive one weighbridge session from raw telemetry to tickets.

    Three activities share one event loop: telemetry ingestion, a
    fixed-interval stability poll, and at most one identification/ledger
    transaction at a time.

    Usage::

        async with WeighbridgeEngine(config, source=src, identifier=ident, capture=camera) as engine:
            await engine.wait_stream_end()
    """

    def __init__(
        self,
        config: WeighbridgeConfig,
        *,
        source: TelemetrySource,
        identifier: Identifier,
        capture: CaptureFn,
        ledger: TicketLedger | None = None,
        materials: Sequence[Material] = DEFAULT_MATERIALS,
        on_ticket: Callable[[LedgerEntry], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._source = source
        self._identifier = identifier
        self._capture = capture
        self._clock = clock
        self._on_ticket = on_ticket
        policy = SentinelPolicy.ISOLATE if config.isolate_sentinels else SentinelPolicy.MATCH
        self._ledger = ledger if ledger is not None else TicketLedger(sentinel_policy=policy, clock=clock)
        self._materials = tuple(materials)
        self._selected = find_material(self._materials, config.default_material_id)
        self._framer = TelemetryFramer(clock=clock)
        self._cell = WeightCell()
        self._detector = StabilityDetector(
            StabilityThresholds(
                departure=config.departure_threshold,
                entry=config.entry_threshold,
                ticks=config.stability_ticks,
            )
        )
        self._ingest_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._transaction: asyncio.Task[LedgerEntry | None] | None = None
        self._stream_ended = asyncio.Event()
        self._running = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WeighbridgeEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Open the telemetry source and start ingestion and polling.

        :class:`~pyweighbridge.exceptions.TelemetryConnectionError` from the
        source propagates: nothing can run without a scale.
        """
        if self._running:
            return
        await self._source.open()
        if self._framer.closed:
            self._framer = TelemetryFramer(clock=self._clock)
        self._stream_ended.clear()
        self._running = True
        self._ingest_task = asyncio.create_task(self._ingest(), name="pyweighbridge-ingest")
        self._poll_task = asyncio.create_task(self._poll(), name="pyweighbridge-poll")
        _logger.debug("Weighbridge engine started")

    async def stop(self) -> None:
        """Cancel every task and close the source."""
        self._running = False
        tasks = [self._poll_task, self._transaction, self._ingest_task]
        self._poll_task = None
        self._transaction = None
        self._ingest_task = None
        for task in tasks:
            if task is not None and not task.done():
                task.cancel()
        for task in tasks:
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        await self._source.close()
        _logger.debug("Weighbridge engine stopped")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def ledger(self) -> TicketLedger:
        return self._ledger

    @property
    def detector(self) -> StabilityDetector:
        return self._detector

    @property
    def cell(self) -> WeightCell:
        return self._cell

    @property
    def materials(self) -> tuple[Material, ...]:
        return self._materials

    @property
    def selected_material(self) -> Material:
        return self._selected

    @property
    def current_weight(self) -> float:
        return self._cell.value

    @property
    def in_flight(self) -> bool:
        """Whether an identification/ledger transaction is outstanding."""
        task = self._transaction
        return task is not None and not task.done()

    @property
    def stream_ended(self) -> bool:
        return self._stream_ended.is_set()

    def select_material(self, material_id: str) -> Material:
        """Select the material priced into the next inbound ticket."""
        self._selected = find_material(self._materials, material_id)
        _logger.info("Selected material %s (%s/kg)", self._selected.id, self._selected.price_per_kg)
        return self._selected

    # ------------------------------------------------------------------
    # Ingestion and polling
    # ------------------------------------------------------------------

    async def _ingest(self) -> None:
        try:
            async for chunk in self._source:
                for sample in self._framer.feed(chunk):
                    self._cell.publish(sample)
        finally:
            self._framer.close()
            self._handle_stream_end()

    def _handle_stream_end(self) -> None:
        if self._stream_ended.is_set():
            return
        if self._running:
            _logger.warning("Telemetry stream ended; suspending stability poll")
        self._stream_ended.set()
        # A weight frozen above the entry threshold would otherwise lock the
        # detector in place, and a pending transaction would block re-arming.
        self._cell.clear()
        self._detector.reset()
        poll = self._poll_task
        self._poll_task = None
        if poll is not None and not poll.done():
            poll.cancel()
        transaction = self._transaction
        self._transaction = None
        if transaction is not None and not transaction.done():
            _logger.warning("Cancelling in-flight transaction after telemetry loss")
            transaction.cancel()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._config.poll_interval)
            self.tick()

    def tick(self) -> bool:
        """Run one stability check against the latest weight.

        Returns ``True`` when it started a transaction.
        """
        weight = self._cell.value
        if not self._detector.tick(weight, in_flight=self.in_flight):
            return False
        self._begin_transaction()
        return True

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _begin_transaction(self) -> asyncio.Task[LedgerEntry | None]:
        trigger_weight = self._cell.value
        task = asyncio.create_task(self._run_transaction(trigger_weight), name="pyweighbridge-transaction")
        self._transaction = task
        return task

    async def _run_transaction(self, trigger_weight: float) -> LedgerEntry | None:
        try:
            try:
                image = await self._capture()
            except Exception:
                _logger.exception("Image capture failed at weight %s; visit not recorded", trigger_weight)
                return None

            result = await identify_safely(self._identifier, image)
            # The truck may still have been settling while the service was
            # working; the ticket gets the weight as it reads now.
            weight = self._cell.value
            _logger.info(
                "Identified %s (confidence %.2f); weight %s at trigger, %s now",
                result.identifier,
                result.confidence,
                trigger_weight,
                weight,
            )
            try:
                entry = self._ledger.record_visit(
                    vehicle_identifier=result.identifier,
                    weight=weight,
                    material=self._selected,
                    captured_at=self._clock(),
                    confidence=result.confidence,
                    image=image,
                )
            except Exception:
                _logger.exception(
                    "Ledger rejected visit by %s at weight %s; visit not recorded", result.identifier, weight
                )
                return None
        finally:
            if self._transaction is asyncio.current_task():
                self._transaction = None

        if self._on_ticket is not None:
            try:
                self._on_ticket(entry)
            except Exception:
                _logger.exception("on_ticket callback failed for ticket %s", entry.ticket.id)
        return entry

    async def force_capture(self) -> LedgerEntry | None:
        """Manual override: capture and record a visit now.

        Refused (returns ``None``) while another transaction is in flight.
        The detector is marked as triggered so the same visit does not fire
        again on its own.
        """
        if self.in_flight:
            _logger.info("Manual capture ignored, a transaction is already in flight")
            return None
        if self._cell.value >= self._detector.thresholds.departure:
            self._detector.mark_triggered()
        return await self._begin_transaction()

    async def wait_idle(self) -> LedgerEntry | None:
        """Wait for the in-flight transaction, if any, and return its outcome."""
        task = self._transaction
        if task is None:
            return None
        return await task

    async def wait_stream_end(self) -> None:
        await self._stream_ended.wait()
