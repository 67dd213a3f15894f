"""The simple label: a float label with optional weight and initial value."""

from __future__ import annotations

import logging
import struct
from typing import Sequence

from vwcore.example import FLT_MAX, LabelData
from vwcore.primitives import float_of

logger = logging.getLogger(__name__)

_LABEL = struct.Struct("<fff")
LABEL_SIZE = _LABEL.size


def default_label() -> LabelData:
    """A label meaning 'unlabeled', with unit weight."""
    return LabelData(label=FLT_MAX, weight=1.0, initial=0.0)


def parse_label(label: LabelData, words: Sequence[str]) -> LabelData:
    """Fill ``label`` from up to three words: label, weight, initial."""
    if len(words) > 3:
        logger.warning("malformed example! words.index() = %d", len(words))
        return label
    if len(words) >= 1:
        label.label = float_of(words[0])
    if len(words) >= 2:
        label.weight = float_of(words[1])
    if len(words) == 3:
        label.initial = float_of(words[2])
    return label


def pack_label(label: LabelData) -> bytes:
    """Binary form of a label as three single-precision floats."""
    return _LABEL.pack(label.label, label.weight, label.initial)


def unpack_label(data: bytes, offset: int = 0) -> tuple[LabelData, int]:
    """Read a label at ``offset``; return it with the offset just past it."""
    if len(data) - offset < LABEL_SIZE:
        raise ValueError("not enough bytes for a label")
    value, weight, initial = _LABEL.unpack_from(data, offset)
    return LabelData(value, weight, initial), offset + LABEL_SIZE


def label_weight(label: LabelData) -> float:
    """The importance weight of a label."""
    return label.weight


def label_initial(label: LabelData) -> float:
    """The initial prediction of a label."""
    return label.initial