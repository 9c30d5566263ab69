"""Vision service identification result."""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pyweighbridge._constants import SENTINEL_IDENTIFIERS, UNKNOWN_IDENTIFIER


class IdentificationResult(BaseModel):
    """Identifier recognized in a still image, with the service's confidence.

    Accepts the service's camelCase payload (``licensePlate``) as well as
    snake_case keys.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    identifier: str = Field(
        default=UNKNOWN_IDENTIFIER,
        validation_alias=AliasChoices("identifier", "licensePlate", "license_plate", "plate"),
    )
    confidence: float = 0.0

    @field_validator("identifier", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value: Any) -> Any:
        if value is None:
            return UNKNOWN_IDENTIFIER
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return UNKNOWN_IDENTIFIER
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        try:
            number = float(value)
        except (TypeError, ValueError):
            return value
        if math.isnan(number):
            return 0.0
        return min(1.0, max(0.0, number))

    @property
    def is_sentinel(self) -> bool:
        """Whether the service could not determine an identifier."""
        return self.identifier in SENTINEL_IDENTIFIERS
