"""Identification layer: still image to vehicle identifier."""

from pyweighbridge.identification.client import (
    HttpIdentificationClient,
    Identifier,
    apply_min_confidence,
    identify_safely,
    manual_check,
    parse_identification_response,
)

__all__ = [
    "HttpIdentificationClient",
    "Identifier",
    "apply_min_confidence",
    "identify_safely",
    "manual_check",
    "parse_identification_response",
]
