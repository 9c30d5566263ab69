"""Raw telemetry sources: the scale's serial port, or any chunk iterable.

A source yields raw chunks (``bytes`` or ``str``) until the underlying
stream ends. Ending iteration *is* the end-of-stream signal; sources never
reconnect on their own.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import Any, Protocol

import serial

from pyweighbridge.config import SerialSettings
from pyweighbridge.exceptions import TelemetryConnectionError

Chunk = bytes | str

_PARITIES: dict[str, str] = {
    "none": serial.PARITY_NONE,
    "even": serial.PARITY_EVEN,
    "odd": serial.PARITY_ODD,
    "mark": serial.PARITY_MARK,
    "space": serial.PARITY_SPACE,
}

_STOP_BITS: dict[float, float] = {
    1: serial.STOPBITS_ONE,
    1.5: serial.STOPBITS_ONE_POINT_FIVE,
    2: serial.STOPBITS_TWO,
}


class TelemetrySource(Protocol):
    """Structural interface consumed by the engine.

    ``open`` is where a source reports that it cannot connect at all;
    iteration afterwards only ever ends, it never raises.
    """

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    def __aiter__(self) -> AsyncIterator[Chunk]:
        ...


class IterableTelemetrySource:
    """Adapt a captured or generated chunk sequence to :class:`TelemetrySource`."""

    def __init__(self, chunks: Iterable[Chunk] | AsyncIterable[Chunk]) -> None:
        self._chunks = chunks
        self._closed = False

    async def open(self) -> None:
        self._closed = False

    async def close(self) -> None:
        self._closed = True

    async def _iterate(self) -> AsyncIterator[Chunk]:
        if isinstance(self._chunks, AsyncIterable):
            async for chunk in self._chunks:
                if self._closed:
                    return
                yield chunk
            return
        for chunk in self._chunks:
            if self._closed:
                return
            yield chunk
            # Let the poll and transaction tasks interleave with replayed data.
            await asyncio.sleep(0)

    def __aiter__(self) -> AsyncIterator[Chunk]:
        return self._iterate()


class SerialTelemetrySource:
    """Threaded pyserial reader that hands chunks to an asyncio loop."""

    def __init__(
        self,
        settings: SerialSettings,
        *,
        serial_factory: Callable[..., Any] = serial.Serial,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._serial_factory = serial_factory
        self._logger = logger or logging.getLogger(__name__)
        self._port: Any = None
        self._thread: threading.Thread | None = None
        self._queue: asyncio.Queue[bytes | None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the reader thread is actively reading."""
        return self._running

    async def open(self) -> None:
        """Open the serial port and start the reader thread.

        Raises :class:`TelemetryConnectionError` when the port cannot be
        opened; this is the one telemetry failure that is not recovered.
        """
        if self._running:
            return
        settings = self._settings
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._logger.debug(
            "Opening scale port=%s baud=%s bits=%s parity=%s stop=%s",
            settings.port,
            settings.baud_rate,
            settings.data_bits,
            settings.parity,
            settings.stop_bits,
        )
        try:
            self._port = self._serial_factory(
                port=settings.port,
                baudrate=settings.baud_rate,
                bytesize=settings.data_bits,
                parity=_PARITIES[settings.parity],
                stopbits=_STOP_BITS[settings.stop_bits],
                timeout=settings.read_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise TelemetryConnectionError(
                f"Cannot open scale port {settings.port}: {exc}",
                port=settings.port,
            ) from exc

        self._running = True
        self._thread = threading.Thread(target=self._read_loop, name="pyweighbridge-serial", daemon=True)
        self._thread.start()

    def _read_loop(self) -> None:
        port = self._port
        try:
            while self._running:
                try:
                    data = port.read(port.in_waiting or 1)
                except (serial.SerialException, OSError, TypeError) as exc:
                    # TypeError: pyserial raises it when the port is closed under a pending read.
                    if self._running:
                        self._logger.warning("Scale port read failed, ending telemetry stream: %s", exc)
                    return
                if data:
                    self._put(data)
        finally:
            self._running = False
            self._put(None)

    def _put(self, item: bytes | None) -> None:
        loop = self._loop
        queue = self._queue
        if loop is None or queue is None:
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Loop already closed; nobody is left to read.
            self._logger.debug("Dropping serial chunk after event loop closed")

    async def close(self) -> None:
        """Stop the reader thread and close the port."""
        self._running = False
        port = self._port
        self._port = None
        thread = self._thread
        self._thread = None
        if port is not None:
            try:
                port.close()
            except (serial.SerialException, OSError):
                self._logger.debug("Error while closing scale port", exc_info=True)
        if thread is not None:
            await asyncio.to_thread(thread.join, self._settings.read_timeout + 1.0)
        self._logger.debug("Scale port closed")

    async def _iterate(self) -> AsyncIterator[bytes]:
        if self._queue is None:
            await self.open()
        queue = self._queue
        assert queue is not None
        while True:
            chunk = await queue.get()
            if chunk is None:
                return
            yield chunk

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def __aenter__(self) -> SerialTelemetrySource:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
