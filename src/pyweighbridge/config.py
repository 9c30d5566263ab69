"""Engine configuration for pyweighbridge."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyweighbridge._constants import (
    DEFAULT_BAUD_RATE,
    DEFAULT_DATA_BITS,
    DEFAULT_PARITY,
    DEFAULT_SERIAL_PORT,
    DEFAULT_STOP_BITS,
    DEPARTURE_THRESHOLD,
    ENTRY_THRESHOLD,
    POLL_INTERVAL_S,
    STABILITY_TICKS,
    VALID_PARITIES,
)
from pyweighbridge.exceptions import WeighbridgeConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SerialSettings:
    """Line settings of the scale indicator's serial port.

    The framer does not care about any of these; they only matter when
    opening the port.
    """

    port: str = DEFAULT_SERIAL_PORT
    baud_rate: int = DEFAULT_BAUD_RATE
    data_bits: int = DEFAULT_DATA_BITS
    stop_bits: float = DEFAULT_STOP_BITS
    parity: str = DEFAULT_PARITY
    read_timeout: float = 0.5

    def __post_init__(self) -> None:
        parity = self.parity.strip().lower()
        if parity not in VALID_PARITIES:
            raise WeighbridgeConfigError(f"parity must be one of {sorted(VALID_PARITIES)}, got {self.parity!r}")
        object.__setattr__(self, "parity", parity)
        if self.data_bits not in (5, 6, 7, 8):
            raise WeighbridgeConfigError(f"data_bits must be 5-8, got {self.data_bits}")
        if self.stop_bits not in (1, 1.5, 2):
            raise WeighbridgeConfigError(f"stop_bits must be 1, 1.5 or 2, got {self.stop_bits}")


@dataclasses.dataclass(frozen=True)
class WeighbridgeConfig:
    """Engine configuration.

    Parameters
    ----------
    serial : SerialSettings
        Scale serial line settings.
    poll_interval : float
        Seconds between stability checks.
    departure_threshold : float
        Weight below which the truck is considered gone and the detector
        re-arms.
    entry_threshold : float
        Weight above which a tick counts towards a stable presence.
    stability_ticks : int
        Qualifying ticks required before a presence event fires.
    identification_url : str or None
        Endpoint of the remote vision service. ``None`` disables the
        bundled HTTP client; callers then supply their own identifier.
    identification_api_key : str or None
        Bearer token sent to the vision service.
    identification_timeout : float
        Total request timeout in seconds.
    min_confidence : float
        Results below this confidence are downgraded to the manual-check
        sentinel. ``0`` keeps every result.
    isolate_sentinels : bool
        When true, sentinel identifiers never match an open ticket and
        always open a new one.
    default_material_id : str
        Material selected when the engine starts.
    """

    serial: SerialSettings = dataclasses.field(default_factory=SerialSettings)
    poll_interval: float = POLL_INTERVAL_S
    departure_threshold: float = DEPARTURE_THRESHOLD
    entry_threshold: float = ENTRY_THRESHOLD
    stability_ticks: int = STABILITY_TICKS
    identification_url: str | None = None
    identification_api_key: str | None = None
    identification_timeout: float = 15.0
    min_confidence: float = 0.0
    isolate_sentinels: bool = True
    default_material_id: str = "mixed"

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise WeighbridgeConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.entry_threshold <= self.departure_threshold:
            raise WeighbridgeConfigError(
                f"entry_threshold ({self.entry_threshold}) must exceed "
                f"departure_threshold ({self.departure_threshold})"
            )
        if self.stability_ticks < 1:
            raise WeighbridgeConfigError(f"stability_ticks must be >= 1, got {self.stability_ticks}")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise WeighbridgeConfigError(f"min_confidence must be within [0, 1], got {self.min_confidence}")

    @classmethod
    def from_env(cls, **overrides: Any) -> WeighbridgeConfig:
        """Create configuration from ``WEIGHBRIDGE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        serial_kwargs: dict[str, Any] = {}
        _ENV_SERIAL_MAP = {
            "WEIGHBRIDGE_SERIAL_PORT": ("port", str),
            "WEIGHBRIDGE_BAUD_RATE": ("baud_rate", int),
            "WEIGHBRIDGE_DATA_BITS": ("data_bits", int),
            "WEIGHBRIDGE_STOP_BITS": ("stop_bits", float),
            "WEIGHBRIDGE_PARITY": ("parity", str),
            "WEIGHBRIDGE_READ_TIMEOUT": ("read_timeout", float),
        }
        for env_key, (field_name, convert) in _ENV_SERIAL_MAP.items():
            val = env.get(env_key)
            if val is not None:
                try:
                    serial_kwargs[field_name] = convert(val)
                except ValueError as exc:
                    raise WeighbridgeConfigError(f"{env_key} is not a valid {convert.__name__}: {val!r}") from exc

        serial_overrides = overrides.pop("serial", None)
        if isinstance(serial_overrides, dict):
            serial_kwargs.update(serial_overrides)
        elif isinstance(serial_overrides, SerialSettings):
            serial_kwargs = dataclasses.asdict(serial_overrides)

        config_kwargs: dict[str, Any] = {"serial": SerialSettings(**serial_kwargs)}

        _ENV_CONFIG_MAP = {
            "WEIGHBRIDGE_POLL_INTERVAL": ("poll_interval", float),
            "WEIGHBRIDGE_DEPARTURE_THRESHOLD": ("departure_threshold", float),
            "WEIGHBRIDGE_ENTRY_THRESHOLD": ("entry_threshold", float),
            "WEIGHBRIDGE_STABILITY_TICKS": ("stability_ticks", int),
            "WEIGHBRIDGE_IDENTIFICATION_URL": ("identification_url", str),
            "WEIGHBRIDGE_IDENTIFICATION_API_KEY": ("identification_api_key", str),
            "WEIGHBRIDGE_IDENTIFICATION_TIMEOUT": ("identification_timeout", float),
            "WEIGHBRIDGE_MIN_CONFIDENCE": ("min_confidence", float),
            "WEIGHBRIDGE_DEFAULT_MATERIAL": ("default_material_id", str),
        }
        for env_key, (field_name, convert) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = convert(val)
                except ValueError as exc:
                    raise WeighbridgeConfigError(f"{env_key} is not a valid {convert.__name__}: {val!r}") from exc

        if "isolate_sentinels" not in overrides:
            config_kwargs["isolate_sentinels"] = _env_bool(env.get("WEIGHBRIDGE_ISOLATE_SENTINELS"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
