"""pyweighbridge - Async weighbridge transaction engine: scale telemetry, stable-presence detection and ticket ledger."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyweighbridge")
except PackageNotFoundError:
    __version__ = "0+local"
from pyweighbridge._constants import MANUAL_CHECK_IDENTIFIER, UNKNOWN_IDENTIFIER
from pyweighbridge.config import SerialSettings, WeighbridgeConfig
from pyweighbridge.engine import WeighbridgeEngine
from pyweighbridge.exceptions import (
    IdentificationError,
    StreamTerminatedError,
    TelemetryConnectionError,
    TelemetryError,
    TicketError,
    TicketNotFoundError,
    TicketStateError,
    WeighbridgeConfigError,
    WeighbridgeError,
)
from pyweighbridge.identification import HttpIdentificationClient, Identifier
from pyweighbridge.ledger import LedgerEntry, SentinelPolicy, TicketLedger
from pyweighbridge.models import (
    DEFAULT_MATERIALS,
    IdentificationResult,
    Leg,
    Material,
    Ticket,
    TicketStatus,
    WeightSample,
)
from pyweighbridge.stability import DetectorPhase, DetectorState, StabilityDetector, StabilityThresholds
from pyweighbridge.telemetry import (
    IterableTelemetrySource,
    SerialTelemetrySource,
    TelemetryFramer,
    TelemetrySource,
    WeightCell,
    extract_weight,
)

__all__ = [
    "__version__",
    "DEFAULT_MATERIALS",
    "DetectorPhase",
    "DetectorState",
    "HttpIdentificationClient",
    "IdentificationError",
    "IdentificationResult",
    "Identifier",
    "IterableTelemetrySource",
    "LedgerEntry",
    "Leg",
    "MANUAL_CHECK_IDENTIFIER",
    "Material",
    "SentinelPolicy",
    "SerialSettings",
    "SerialTelemetrySource",
    "StabilityDetector",
    "StabilityThresholds",
    "StreamTerminatedError",
    "TelemetryConnectionError",
    "TelemetryError",
    "TelemetryFramer",
    "TelemetrySource",
    "Ticket",
    "TicketError",
    "TicketLedger",
    "TicketNotFoundError",
    "TicketStateError",
    "TicketStatus",
    "UNKNOWN_IDENTIFIER",
    "WeighbridgeConfig",
    "WeighbridgeConfigError",
    "WeighbridgeEngine",
    "WeighbridgeError",
    "WeightCell",
    "WeightSample",
    "extract_weight",
]
