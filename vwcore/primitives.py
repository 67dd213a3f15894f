"""Text parsing primitives: tokenizing and C-style number conversion."""

from __future__ import annotations

import logging
import math
import re
import struct

logger = logging.getLogger(__name__)

_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_ULONG_MAX = 2**64 - 1


def tokenize(delim: str, text: str) -> list[str]:
    """Split on a delimiter, dropping empty pieces."""
    return [piece for piece in text.split(delim) if piece]


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def float_of(text: str) -> float:
    """Parse the longest leading float of ``text`` at single precision.

    Text with no leading number yields 0 and a logged error.
    """
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        if text:
            logger.error("error: %s is not a float", text)
        return 0.0
    return _to_float32(float(match.group(1)))


def int_of(text: str) -> int:
    """Parse a leading decimal integer; 0 if there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def ulong_of(text: str) -> int:
    """Parse a leading unsigned 64-bit decimal, wrapping negatives and saturating."""
    match = _INT_PREFIX.match(text)
    if match is None:
        return 0
    value = int(match.group(1))
    if abs(value) > _ULONG_MAX:
        return _ULONG_MAX
    return value % (_ULONG_MAX + 1)