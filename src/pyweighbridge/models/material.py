"""Material reference data."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyweighbridge.exceptions import WeighbridgeConfigError


class Material(BaseModel):
    """A billable material selected by the operator.

    A negative ``price_per_kg`` means the site pays the customer (scrap).
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(min_length=1)
    name: str
    price_per_kg: Decimal

    @field_validator("price_per_kg", mode="before")
    @classmethod
    def _float_via_str(cls, value: object) -> object:
        # Decimal(0.15) carries binary noise; go through repr instead.
        if isinstance(value, float):
            return str(value)
        return value


DEFAULT_MATERIALS: tuple[Material, ...] = (
    Material(id="mixed", name="Mixed Waste", price_per_kg=Decimal("0.15")),
    Material(id="concrete", name="Clean Concrete", price_per_kg=Decimal("0.05")),
    Material(id="wood", name="Clean Wood", price_per_kg=Decimal("0.08")),
    Material(id="metal", name="Scrap Metal", price_per_kg=Decimal("-0.20")),
)


def find_material(materials: Iterable[Material], material_id: str) -> Material:
    """Return the catalog entry for *material_id*.

    Raises :class:`WeighbridgeConfigError` for an id not in the catalog.
    """
    for material in materials:
        if material.id == material_id:
            return material
    raise WeighbridgeConfigError(f"unknown material id: {material_id!r}")
