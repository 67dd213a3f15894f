import pytest

from vwcore.example import FLT_MAX, LabelData
from vwcore.simple_label import (
    LABEL_SIZE,
    default_label,
    label_initial,
    label_weight,
    pack_label,
    parse_label,
    unpack_label,
)


def test_default_label():
    ld = default_label()
    assert (ld.label, ld.weight, ld.initial) == (FLT_MAX, 1.0, 0.0)


def test_parse_no_words_keeps_defaults():
    assert parse_label(default_label(), []) == default_label()


def test_parse_one_two_three_words():
    assert parse_label(default_label(), ["0.5"]) == LabelData(0.5, 1.0, 0.0)
    assert parse_label(default_label(), ["1", "2"]) == LabelData(1.0, 2.0, 0.0)
    assert parse_label(default_label(), ["-1", "2", "0.25"]) == LabelData(-1.0, 2.0, 0.25)


def test_parse_too_many_words_leaves_label():
    ld = parse_label(default_label(), ["1", "2", "3", "4"])
    assert ld == default_label()


def test_parse_mutates_given_label():
    ld = default_label()
    parse_label(ld, ["2"])
    assert ld.label == 2.0


def test_pack_fixed_bytes():
    assert pack_label(LabelData(1.0, 1.0, 0.0)) == b"\x00\x00\x80?\x00\x00\x80?\x00\x00\x00\x00"
    assert len(pack_label(default_label())) == LABEL_SIZE


def test_round_trip_with_offset():
    ld = LabelData(-0.5, 4.0, 0.125)
    data = b"xy" + pack_label(ld) + b"z"
    back, end = unpack_label(data, 2)
    assert back == ld
    assert end == 2 + LABEL_SIZE
    assert data[end:] == b"z"


def test_round_trip_default():
    back, _ = unpack_label(pack_label(default_label()))
    assert back == default_label()


def test_unpack_short_data_raises():
    with pytest.raises(ValueError):
        unpack_label(pack_label(default_label())[:-1])


def test_accessors():
    ld = LabelData(1.0, 3.0, 0.75)
    assert label_weight(ld) == 3.0
    assert label_initial(ld) == 0.75