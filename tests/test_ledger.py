from __future__ import annotations

import itertools
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pyweighbridge._constants import MANUAL_CHECK_IDENTIFIER, UNKNOWN_IDENTIFIER
from pyweighbridge.exceptions import TicketNotFoundError, TicketStateError
from pyweighbridge.ledger.policy import SentinelPolicy
from pyweighbridge.ledger.store import TicketLedger
from pyweighbridge.models.material import DEFAULT_MATERIALS, Material, find_material
from pyweighbridge.models.ticket import Leg, TicketStatus

_MIXED = find_material(DEFAULT_MATERIALS, "mixed")
_METAL = find_material(DEFAULT_MATERIALS, "metal")


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 8, minute, tzinfo=UTC)


def _ledger(**kwargs) -> TicketLedger:
    counter = itertools.count(1)
    return TicketLedger(clock=_dt, id_factory=lambda: f"T{next(counter)}", **kwargs)


def test_inbound_then_outbound_round_trip() -> None:
    ledger = _ledger()

    inbound = ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=_MIXED)
    assert inbound.leg == Leg.INBOUND
    assert inbound.ticket.status == TicketStatus.OPEN
    assert inbound.ticket.price_per_kg == Decimal("0.15")
    assert inbound.ticket.net_weight is None
    assert inbound.ticket.total_cost is None

    outbound = ledger.record_visit(vehicle_identifier="ABC123", weight=4000.0, material=_MIXED, captured_at=_dt(30))
    ticket = outbound.ticket
    assert outbound.leg == Leg.OUTBOUND
    assert ticket.id == inbound.ticket.id
    assert ticket.net_weight == 8000.0
    assert ticket.total_cost == Decimal("1200.00")
    assert ticket.status == TicketStatus.COMPLETED
    assert ticket.outbound_captured_at == _dt(30)
    assert len(ledger) == 1


def test_net_weight_is_absolute_when_truck_leaves_heavier() -> None:
    ledger = _ledger()
    ledger.record_visit(vehicle_identifier="LOAD1", weight=4000.0, material=_MIXED)
    ticket = ledger.record_visit(vehicle_identifier="LOAD1", weight=12000.0, material=_MIXED).ticket

    assert ticket.net_weight == 8000.0
    assert ticket.total_cost == Decimal("1200.00")


def test_negative_price_produces_payout() -> None:
    ledger = _ledger()
    ledger.record_visit(vehicle_identifier="SCRAP1", weight=15000.0, material=_METAL)
    ticket = ledger.record_visit(vehicle_identifier="SCRAP1", weight=10000.0, material=_MIXED).ticket

    assert ticket.total_cost == Decimal("-1000.00")
    assert ticket.total_cost < 0


def test_price_snapshot_ignores_later_material_changes() -> None:
    ledger = _ledger()
    cheap = Material(id="mixed", name="Mixed Waste", price_per_kg=Decimal("0.15"))
    ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=cheap)

    repriced = Material(id="mixed", name="Mixed Waste", price_per_kg=Decimal("9.99"))
    ticket = ledger.record_visit(vehicle_identifier="ABC123", weight=4000.0, material=repriced).ticket

    assert ticket.price_per_kg == Decimal("0.15")
    assert ticket.total_cost == Decimal("1200.00")


def test_distinct_identifiers_do_not_interfere() -> None:
    ledger = _ledger()
    a = ledger.record_visit(vehicle_identifier="AAA111", weight=10000.0, material=_MIXED)
    b = ledger.record_visit(vehicle_identifier="BBB222", weight=11000.0, material=_MIXED)

    assert a.leg == b.leg == Leg.INBOUND
    assert {t.id for t in ledger.open_tickets()} == {a.ticket.id, b.ticket.id}

    closed = ledger.record_visit(vehicle_identifier="BBB222", weight=3000.0, material=_MIXED)
    assert closed.ticket.id == b.ticket.id
    assert ledger.get(a.ticket.id).status == TicketStatus.OPEN


def test_at_most_one_open_ticket_per_identifier() -> None:
    ledger = _ledger()
    for weight in (12000.0, 4000.0, 11000.0, 3500.0, 9000.0):
        ledger.record_visit(vehicle_identifier="ABC123", weight=weight, material=_MIXED)
        open_for_plate = [t for t in ledger.open_tickets() if t.vehicle_identifier == "ABC123"]
        assert len(open_for_plate) <= 1

    statuses = [t.status for t in ledger.tickets()]
    assert statuses == [TicketStatus.OPEN, TicketStatus.COMPLETED, TicketStatus.COMPLETED]


def test_identifier_match_is_exact() -> None:
    ledger = _ledger()
    ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=_MIXED)
    entry = ledger.record_visit(vehicle_identifier="abc123", weight=4000.0, material=_MIXED)

    assert entry.leg == Leg.INBOUND
    assert len(ledger.open_tickets()) == 2


def test_tickets_listed_newest_first() -> None:
    ledger = _ledger()
    for plate in ("A", "B", "C"):
        ledger.record_visit(vehicle_identifier=plate, weight=1000.0, material=_MIXED)
    ledger.record_visit(vehicle_identifier="A", weight=500.0, material=_MIXED)

    assert [t.vehicle_identifier for t in ledger.tickets()] == ["C", "B", "A"]


def test_isolated_sentinels_always_open_new_tickets() -> None:
    ledger = _ledger()
    first = ledger.record_visit(vehicle_identifier=UNKNOWN_IDENTIFIER, weight=12000.0, material=_MIXED)
    second = ledger.record_visit(vehicle_identifier=UNKNOWN_IDENTIFIER, weight=4000.0, material=_MIXED)
    third = ledger.record_visit(vehicle_identifier=MANUAL_CHECK_IDENTIFIER, weight=5000.0, material=_MIXED)

    assert first.leg == second.leg == third.leg == Leg.INBOUND
    assert len(ledger.open_tickets()) == 3
    assert ledger.find_open(UNKNOWN_IDENTIFIER) is None


def test_match_policy_pairs_sentinels_like_any_string() -> None:
    ledger = _ledger(sentinel_policy=SentinelPolicy.MATCH)
    ledger.record_visit(vehicle_identifier=UNKNOWN_IDENTIFIER, weight=12000.0, material=_MIXED)
    entry = ledger.record_visit(vehicle_identifier=UNKNOWN_IDENTIFIER, weight=4000.0, material=_MIXED)

    assert entry.leg == Leg.OUTBOUND
    assert entry.ticket.status == TicketStatus.COMPLETED


def test_manual_complete_of_sentinel_ticket() -> None:
    ledger = _ledger()
    opened = ledger.record_visit(vehicle_identifier=UNKNOWN_IDENTIFIER, weight=12000.0, material=_MIXED).ticket

    closed = ledger.complete(opened.id, weight=4000.0)

    assert closed.status == TicketStatus.COMPLETED
    assert closed.total_cost == Decimal("1200.00")


def test_void_is_terminal() -> None:
    ledger = _ledger()
    opened = ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=_MIXED).ticket

    voided = ledger.void(opened.id, reason="driver turned back")
    assert voided.status == TicketStatus.VOID
    assert voided.void_reason == "driver turned back"
    assert voided.net_weight is None
    assert voided.total_cost is None

    with pytest.raises(TicketStateError):
        ledger.void(opened.id)
    with pytest.raises(TicketStateError):
        ledger.complete(opened.id, weight=1.0)

    # The plate is free again: next visit is a fresh inbound.
    entry = ledger.record_visit(vehicle_identifier="ABC123", weight=11000.0, material=_MIXED)
    assert entry.leg == Leg.INBOUND
    assert entry.ticket.id != opened.id


def test_completed_ticket_cannot_be_voided() -> None:
    ledger = _ledger()
    ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=_MIXED)
    closed = ledger.record_visit(vehicle_identifier="ABC123", weight=4000.0, material=_MIXED).ticket

    with pytest.raises(TicketStateError):
        ledger.void(closed.id)


def test_unknown_ticket_id() -> None:
    ledger = _ledger()
    with pytest.raises(TicketNotFoundError):
        ledger.get("nope")
    assert "nope" not in ledger


def test_non_finite_weights_are_rejected_and_ticket_stays_closable() -> None:
    ledger = _ledger()
    with pytest.raises(ValidationError):
        ledger.record_visit(vehicle_identifier="ABC123", weight=float("inf"), material=_MIXED)
    assert len(ledger) == 0

    opened = ledger.record_visit(vehicle_identifier="ABC123", weight=12000.0, material=_MIXED).ticket
    with pytest.raises(ValueError):
        ledger.record_visit(vehicle_identifier="ABC123", weight=float("nan"), material=_MIXED)
    assert ledger.get(opened.id).is_open

    closed = ledger.record_visit(vehicle_identifier="ABC123", weight=4000.0, material=_MIXED)
    assert closed.leg == Leg.OUTBOUND
    assert closed.ticket.total_cost == Decimal("1200.00")
