from __future__ import annotations

import pytest

from pyweighbridge.config import SerialSettings, WeighbridgeConfig
from pyweighbridge.exceptions import WeighbridgeConfigError


def test_reference_defaults() -> None:
    config = WeighbridgeConfig()

    assert config.serial.baud_rate == 9600
    assert config.serial.data_bits == 8
    assert config.serial.stop_bits == 1
    assert config.serial.parity == "none"
    assert config.poll_interval == 0.2
    assert (config.departure_threshold, config.entry_threshold, config.stability_ticks) == (100.0, 500.0, 10)
    assert config.isolate_sentinels is True


def test_thresholds_must_be_ordered() -> None:
    with pytest.raises(WeighbridgeConfigError):
        WeighbridgeConfig(departure_threshold=600.0, entry_threshold=500.0)


def test_invalid_serial_settings() -> None:
    with pytest.raises(WeighbridgeConfigError):
        SerialSettings(parity="sometimes")
    with pytest.raises(WeighbridgeConfigError):
        SerialSettings(data_bits=9)


def test_parity_is_normalized() -> None:
    assert SerialSettings(parity=" Even ").parity == "even"


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("WEIGHBRIDGE_SERIAL_PORT", "/dev/ttyS3")
    monkeypatch.setenv("WEIGHBRIDGE_BAUD_RATE", "19200")
    monkeypatch.setenv("WEIGHBRIDGE_ENTRY_THRESHOLD", "800")
    monkeypatch.setenv("WEIGHBRIDGE_STABILITY_TICKS", "15")
    monkeypatch.setenv("WEIGHBRIDGE_IDENTIFICATION_URL", "https://vision.example/identify")
    monkeypatch.setenv("WEIGHBRIDGE_ISOLATE_SENTINELS", "no")

    config = WeighbridgeConfig.from_env(poll_interval=0.5)

    assert config.serial.port == "/dev/ttyS3"
    assert config.serial.baud_rate == 19200
    assert config.entry_threshold == 800.0
    assert config.stability_ticks == 15
    assert config.identification_url == "https://vision.example/identify"
    assert config.isolate_sentinels is False
    assert config.poll_interval == 0.5


def test_from_env_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("WEIGHBRIDGE_STABILITY_TICKS", "15")
    monkeypatch.setenv("WEIGHBRIDGE_PARITY", "odd")

    config = WeighbridgeConfig.from_env(stability_ticks=3, serial={"port": "COM4"})

    assert config.stability_ticks == 3
    assert config.serial.port == "COM4"
    assert config.serial.parity == "odd"


def test_from_env_rejects_non_numeric(monkeypatch) -> None:
    monkeypatch.setenv("WEIGHBRIDGE_POLL_INTERVAL", "fast")
    with pytest.raises(WeighbridgeConfigError):
        WeighbridgeConfig.from_env()
