"""In-memory ticket ledger.

This is the only component allowed to create or change tickets. Every
change is a single dict assignment, so readers listing tickets never need
a lock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pyweighbridge.exceptions import TicketNotFoundError, TicketStateError
from pyweighbridge.ledger.policy import SentinelPolicy, is_sentinel, may_match
from pyweighbridge.models._base import utcnow
from pyweighbridge.models.material import Material
from pyweighbridge.models.ticket import Leg, Ticket, TicketStatus, new_ticket_id

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Outcome of one recorded visit: the ticket as it now stands, and which leg."""

    ticket: Ticket
    leg: Leg


class TicketLedger:
    """Session ledger pairing inbound and outbound weighings.

    Parameters
    ----------
    sentinel_policy : SentinelPolicy
        How visits whose identifier is an identification sentinel are
        matched. With ``ISOLATE`` (default) they always open a new ticket,
        and the one-open-ticket-per-identifier rule only covers recognized
        identifiers.
    """

    def __init__(
        self,
        *,
        sentinel_policy: SentinelPolicy = SentinelPolicy.ISOLATE,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_ticket_id,
    ) -> None:
        self._sentinel_policy = sentinel_policy
        self._clock = clock
        self._id_factory = id_factory
        self._tickets: dict[str, Ticket] = {}
        self._open_by_identifier: dict[str, str] = {}

    @property
    def sentinel_policy(self) -> SentinelPolicy:
        return self._sentinel_policy

    def __len__(self) -> int:
        return len(self._tickets)

    def __contains__(self, ticket_id: object) -> bool:
        return ticket_id in self._tickets

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, ticket_id: str) -> Ticket:
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def find_open(self, vehicle_identifier: str) -> Ticket | None:
        """The open ticket a visit by *vehicle_identifier* would close, if any."""
        if not may_match(vehicle_identifier, self._sentinel_policy):
            return None
        ticket_id = self._open_by_identifier.get(vehicle_identifier)
        if ticket_id is None:
            return None
        return self._tickets[ticket_id]

    def tickets(self) -> list[Ticket]:
        """All tickets of the session, newest first."""
        return list(reversed(list(self._tickets.values())))

    def open_tickets(self) -> list[Ticket]:
        return [ticket for ticket in self.tickets() if ticket.status == TicketStatus.OPEN]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_visit(
        self,
        *,
        vehicle_identifier: str,
        weight: float,
        material: Material,
        captured_at: datetime | None = None,
        confidence: float | None = None,
        image: bytes | None = None,
    ) -> LedgerEntry:
        """Record one resolved truck visit.

        Closes the identifier's open ticket if there is one (outbound leg),
        otherwise opens a new ticket priced from *material* (inbound leg).
        Exactly one ticket is created or changed.
        """
        at = captured_at or self._clock()
        existing = self.find_open(vehicle_identifier)
        if existing is not None:
            ticket = self.complete(existing.id, weight=weight, captured_at=at, confidence=confidence, image=image)
            return LedgerEntry(ticket=ticket, leg=Leg.OUTBOUND)

        ticket = Ticket(
            id=self._id_factory(),
            vehicle_identifier=vehicle_identifier,
            material_id=material.id,
            material_name=material.name,
            price_per_kg=material.price_per_kg,
            inbound_weight=weight,
            inbound_captured_at=at,
            inbound_confidence=confidence,
            inbound_image=image,
        )
        if ticket.id in self._tickets:
            raise TicketStateError(f"ticket id collision: {ticket.id}")
        self._tickets[ticket.id] = ticket
        if may_match(vehicle_identifier, self._sentinel_policy):
            self._open_by_identifier[vehicle_identifier] = ticket.id
        elif is_sentinel(vehicle_identifier):
            _logger.warning(
                "Ticket %s opened for unidentified vehicle (%s); it needs manual completion",
                ticket.id,
                vehicle_identifier,
            )
        _logger.info(
            "Ticket %s opened for %s: inbound %s, material %s",
            ticket.id,
            vehicle_identifier,
            weight,
            material.id,
        )
        return LedgerEntry(ticket=ticket, leg=Leg.INBOUND)

    def complete(
        self,
        ticket_id: str,
        *,
        weight: float,
        captured_at: datetime | None = None,
        confidence: float | None = None,
        image: bytes | None = None,
    ) -> Ticket:
        """Close an open ticket with its outbound weighing.

        Used for the outbound leg of a matched visit, and by operators to
        finish tickets that cannot be matched automatically.
        """
        ticket = self._require_open(ticket_id)
        closed = ticket.completed(
            weight=weight,
            captured_at=captured_at or self._clock(),
            confidence=confidence,
            image=image,
        )
        self._replace(closed)
        _logger.info(
            "Ticket %s completed for %s: net %s, total %s",
            closed.id,
            closed.vehicle_identifier,
            closed.net_weight,
            closed.total_cost,
        )
        return closed

    def void(self, ticket_id: str, *, reason: str | None = None) -> Ticket:
        """Cancel an open ticket. Voided tickets stay in the ledger."""
        ticket = self._require_open(ticket_id)
        voided = ticket.voided(at=self._clock(), reason=reason)
        self._replace(voided)
        _logger.info("Ticket %s voided (%s)", voided.id, reason or "no reason given")
        return voided

    def _require_open(self, ticket_id: str) -> Ticket:
        ticket = self.get(ticket_id)
        if ticket.status != TicketStatus.OPEN:
            raise TicketStateError(f"ticket {ticket_id} is {ticket.status}, not open")
        return ticket

    def _replace(self, ticket: Ticket) -> None:
        self._tickets[ticket.id] = ticket
        if self._open_by_identifier.get(ticket.vehicle_identifier) == ticket.id:
            del self._open_by_identifier[ticket.vehicle_identifier]
