"""Latest-value cell shared between telemetry ingestion and the stability poll."""

from __future__ import annotations

from pyweighbridge.models.telemetry import WeightSample


class WeightCell:
    """Single-writer, multi-reader holder of the most recent sample.

    Ingestion is the only writer. Readers take a snapshot: the stored
    reference is replaced in one assignment, so a reader sees either the
    previous or the new sample, never a mix, without any lock.
    """

    __slots__ = ("_sample",)

    def __init__(self) -> None:
        self._sample: WeightSample | None = None

    def publish(self, sample: WeightSample) -> None:
        self._sample = sample

    def snapshot(self) -> WeightSample | None:
        return self._sample

    @property
    def value(self) -> float:
        """Latest weight, ``0.0`` before the first sample or after :meth:`clear`."""
        sample = self._sample
        return sample.value if sample is not None else 0.0

    def clear(self) -> None:
        self._sample = None
