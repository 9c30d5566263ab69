"""Matching policy for identifiers that the vision service could not resolve."""

from __future__ import annotations

from enum import StrEnum

from pyweighbridge._constants import SENTINEL_IDENTIFIERS


class SentinelPolicy(StrEnum):
    MATCH = "match"
    """Sentinels are ordinary strings: two unidentified trucks pair up."""

    ISOLATE = "isolate"
    """Sentinels never pair; each such visit opens its own ticket."""


def is_sentinel(identifier: str) -> bool:
    return identifier in SENTINEL_IDENTIFIERS


def may_match(identifier: str, policy: SentinelPolicy) -> bool:
    """Whether a visit with *identifier* may close an existing open ticket."""
    if policy == SentinelPolicy.MATCH:
        return True
    return not is_sentinel(identifier)
