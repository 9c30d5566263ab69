from __future__ import annotations

import pytest

from pyweighbridge.exceptions import StreamTerminatedError
from pyweighbridge.telemetry.framer import TelemetryFramer, extract_weight, numeric_tokens

_STREAM = b"ST,GS,+  20340 kg\r\nno data\n   1500\r\nUS,NT,-12.5,+  980.25 kg\n00,ST, 07 kg\r\npartial 42"


def _values(samples) -> list[tuple[float, str]]:
    return [(s.value, s.raw_line) for s in samples]


def test_extract_weight_picks_the_largest_token() -> None:
    assert extract_weight("ST,GS,+  20340 kg") == 20340.0
    assert extract_weight("US,NT,-12.5,+  980.25 kg") == 980.25
    assert extract_weight("   1500") == 1500.0


def test_extract_weight_returns_none_without_numbers() -> None:
    assert extract_weight("no data") is None
    assert extract_weight("") is None
    assert extract_weight("ST,GS,+ kg") is None


def test_extract_weight_negative_only_line_keeps_sign() -> None:
    assert extract_weight("ST,NT,-  35 kg") == -35.0


def test_numeric_tokens_are_maximal_and_signed() -> None:
    assert numeric_tokens("a-12.50b+3c0004") == [-12.5, 3.0, 4.0]


def test_framer_emits_one_sample_per_parsable_line() -> None:
    framer = TelemetryFramer()
    samples = framer.feed(_STREAM)

    assert [s.value for s in samples] == [20340.0, 1500.0, 980.25, 7.0]
    assert framer.malformed_lines == 1
    assert framer.pending == "partial 42"


def test_framer_never_emits_the_trailing_fragment() -> None:
    framer = TelemetryFramer()
    assert framer.feed("  12000") == []
    assert framer.close() == "  12000"
    assert framer.pending == ""


@pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 11, 64])
def test_framer_chunk_boundaries_do_not_change_output(size: int) -> None:
    whole = TelemetryFramer().feed(_STREAM)

    framer = TelemetryFramer()
    pieces = []
    for start in range(0, len(_STREAM), size):
        pieces.extend(framer.feed(_STREAM[start : start + size]))

    assert _values(pieces) == _values(whole)


def test_framer_every_two_way_split_matches_single_chunk() -> None:
    whole = _values(TelemetryFramer().feed(_STREAM))
    for cut in range(len(_STREAM) + 1):
        framer = TelemetryFramer()
        split = framer.feed(_STREAM[:cut]) + framer.feed(_STREAM[cut:])
        assert _values(split) == whole, cut


def test_framer_crlf_split_between_chunks() -> None:
    framer = TelemetryFramer()
    assert framer.feed("  4000\r") == []
    samples = framer.feed("\n")
    assert [s.value for s in samples] == [4000.0]
    assert samples[0].raw_line == "  4000"


def test_framer_decodes_multibyte_characters_across_chunks() -> None:
    line = "Gewicht 1234 kg ü\n".encode()
    cut = line.index(b"\xc3") + 1

    framer = TelemetryFramer()
    samples = framer.feed(line[:cut]) + framer.feed(line[cut:])

    assert [s.raw_line for s in samples] == ["Gewicht 1234 kg ü"]


def test_framer_rejects_data_after_close() -> None:
    framer = TelemetryFramer()
    framer.close()
    with pytest.raises(StreamTerminatedError):
        framer.feed("1\n")


def test_framer_drops_overflowing_numeric_token() -> None:
    framer = TelemetryFramer()
    samples = framer.feed("ST,GS," + "9" * 400 + " kg\nST,GS,+  20340 kg\n")

    assert [s.value for s in samples] == [20340.0]
    assert framer.malformed_lines == 1


def test_framer_discards_runaway_fragment() -> None:
    framer = TelemetryFramer(max_fragment=16)

    assert framer.feed("ST,GS,+ 1" + "0" * 20) == []
    assert framer.pending == ""
    assert framer.feed("000 kg\r\nST,GS,+  980 kg\r\n")[0].value == 980.0
    assert framer.malformed_lines == 1
