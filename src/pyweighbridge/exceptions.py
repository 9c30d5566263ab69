"""Custom exception hierarchy for pyweighbridge."""

from __future__ import annotations


class WeighbridgeError(Exception):
    """Base exception for all pyweighbridge errors."""


class WeighbridgeConfigError(WeighbridgeError):
    """Invalid or missing configuration."""


class TelemetryError(WeighbridgeError):
    """Failure on the scale telemetry path."""


class TelemetryConnectionError(TelemetryError):
    """The telemetry connection could not be established at all.

    This is the only telemetry failure that escalates to the surrounding
    application: it indicates a configuration or environment problem
    (missing port, permissions, port busy), not bad data on the wire.
    """

    def __init__(self, message: str, *, port: str = "") -> None:
        self.port = port
        super().__init__(message)


class StreamTerminatedError(TelemetryError):
    """Data was offered to a framer after its stream had ended."""


class IdentificationError(WeighbridgeError):
    """The remote identification service failed (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message)


class TicketError(WeighbridgeError):
    """Base exception for ticket ledger errors."""


class TicketNotFoundError(TicketError):
    """No ticket with the requested id exists in this session."""

    def __init__(self, ticket_id: str) -> None:
        self.ticket_id = ticket_id
        super().__init__(f"unknown ticket: {ticket_id}")


class TicketStateError(TicketError):
    """Requested transition is not allowed from the ticket's current status.

    Tickets only move ``open -> completed`` or ``open -> void``; both are
    terminal.
    """
