"""Scale telemetry sample model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pyweighbridge.models._base import UtcDatetime, utcnow


class WeightSample(BaseModel):
    """One weight reading extracted from a telemetry line.

    Transient: samples are published to the latest-value cell and never
    stored.
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(allow_inf_nan=False)
    observed_at: UtcDatetime = Field(default_factory=utcnow)
    raw_line: str = ""
