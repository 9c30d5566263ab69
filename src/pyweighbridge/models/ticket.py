"""Weighing ticket model."""

from __future__ import annotations

import math
import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pyweighbridge.models._base import UtcDatetime

_CENTS = Decimal("0.01")


class TicketStatus(StrEnum):
    OPEN = "open"
    COMPLETED = "completed"
    VOID = "void"


class Leg(StrEnum):
    """Which side of a weighing transaction a visit recorded."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


def new_ticket_id() -> str:
    return uuid.uuid4().hex


def compute_net_weight(inbound_weight: float, outbound_weight: float) -> float:
    """Absolute difference between the two legs."""
    return abs(inbound_weight - outbound_weight)


def compute_total_cost(net_weight: float, price_per_kg: Decimal) -> Decimal:
    """Net weight times the snapshotted price, rounded to cents.

    The sign follows ``price_per_kg``: a negative total is a payout.
    """
    total = Decimal(repr(net_weight)) * price_per_kg
    return total.quantize(_CENTS, rounding=ROUND_HALF_UP)


class Ticket(BaseModel):
    """A vehicle's inbound and (once closed) outbound weighing.

    Instances are frozen. The ledger replaces a ticket with an updated
    copy on close or void; nothing else mutates it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=new_ticket_id, min_length=1)
    vehicle_identifier: str
    material_id: str
    material_name: str = ""
    price_per_kg: Decimal
    """Price snapshotted from the selected material when the ticket opened."""

    inbound_weight: float = Field(allow_inf_nan=False)
    inbound_captured_at: UtcDatetime
    inbound_confidence: float | None = None
    inbound_image: bytes | None = Field(default=None, repr=False)

    outbound_weight: float | None = Field(default=None, allow_inf_nan=False)
    outbound_captured_at: UtcDatetime | None = None
    outbound_confidence: float | None = None
    outbound_image: bytes | None = Field(default=None, repr=False)

    net_weight: float | None = None
    total_cost: Decimal | None = None

    status: TicketStatus = TicketStatus.OPEN
    voided_at: UtcDatetime | None = None
    void_reason: str | None = None

    @model_validator(mode="after")
    def _check_totals_match_status(self) -> Ticket:
        completed = self.status == TicketStatus.COMPLETED
        has_totals = self.net_weight is not None and self.total_cost is not None
        has_any_total = self.net_weight is not None or self.total_cost is not None
        if completed and not has_totals:
            raise ValueError("completed ticket requires net_weight and total_cost")
        if not completed and has_any_total:
            raise ValueError(f"{self.status} ticket must not carry net_weight/total_cost")
        if completed and (self.outbound_weight is None or self.outbound_captured_at is None):
            raise ValueError("completed ticket requires an outbound weighing")
        return self

    @property
    def is_open(self) -> bool:
        return self.status == TicketStatus.OPEN

    def completed(
        self,
        *,
        weight: float,
        captured_at: datetime,
        confidence: float | None = None,
        image: bytes | None = None,
    ) -> Ticket:
        """Return a completed copy with the outbound leg and totals filled in."""
        if not math.isfinite(weight):
            raise ValueError(f"outbound weight must be finite, got {weight}")
        net_weight = compute_net_weight(self.inbound_weight, weight)
        return self.model_validate(
            {
                **self.model_dump(),
                "outbound_weight": weight,
                "outbound_captured_at": captured_at,
                "outbound_confidence": confidence,
                "outbound_image": image,
                "net_weight": net_weight,
                "total_cost": compute_total_cost(net_weight, self.price_per_kg),
                "status": TicketStatus.COMPLETED,
            }
        )

    def voided(self, *, at: datetime, reason: str | None = None) -> Ticket:
        """Return a voided copy."""
        return self.model_validate(
            {
                **self.model_dump(),
                "status": TicketStatus.VOID,
                "voided_at": at,
                "void_reason": reason,
            }
        )
