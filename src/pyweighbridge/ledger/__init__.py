"""Ledger layer.

The ledger is the single source of truth for tickets in a weighbridge
session: it decides inbound versus outbound for each resolved visit.
"""

from pyweighbridge.ledger.policy import SentinelPolicy, is_sentinel, may_match
from pyweighbridge.ledger.store import LedgerEntry, TicketLedger

__all__ = ["LedgerEntry", "SentinelPolicy", "TicketLedger", "is_sentinel", "may_match"]
