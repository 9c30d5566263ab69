"""Data models for weighbridge telemetry, materials and tickets."""

from pyweighbridge.models._base import UtcDatetime, parse_utc_datetime, utcnow
from pyweighbridge.models.identification import IdentificationResult
from pyweighbridge.models.material import DEFAULT_MATERIALS, Material, find_material
from pyweighbridge.models.telemetry import WeightSample
from pyweighbridge.models.ticket import (
    Leg,
    Ticket,
    TicketStatus,
    compute_net_weight,
    compute_total_cost,
    new_ticket_id,
)

__all__ = [
    "DEFAULT_MATERIALS",
    "IdentificationResult",
    "Leg",
    "Material",
    "Ticket",
    "TicketStatus",
    "UtcDatetime",
    "WeightSample",
    "compute_net_weight",
    "compute_total_cost",
    "find_material",
    "new_ticket_id",
    "parse_utc_datetime",
    "utcnow",
]
