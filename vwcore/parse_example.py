"""Parsing one text line into an example of hashed features."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from vwcore.example import AuditData, Example, Feature
from vwcore.primitives import float_of, tokenize
from vwcore.simple_label import default_label, parse_label

logger = logging.getLogger(__name__)

HashFunction = Callable[[bytes, int], int]
"""A byte-string hash taking a seed, as used for feature names."""

HASH_MODES = ("strings", "all")
ANONYMOUS_NAMESPACE = ord(" ")

_SIZE_MASK = 2**64 - 1


def _trim(data: bytes) -> bytes:
    start, end = 0, len(data)
    while start < end and data[start] <= 0x20:
        start += 1
    while end > start and data[end - 1] <= 0x20:
        end -= 1
    return data[start:end]


def hash_string(text: str, seed: int, fallback: HashFunction) -> int:
    """Hash a feature name: decimal names map to their value plus ``seed``.

    Surrounding whitespace is ignored; other names go to ``fallback``.
    """
    data = _trim(text.encode())
    if not data:
        return seed & _SIZE_MASK
    if data.isdigit():
        return (int(data) + seed) & _SIZE_MASK
    return fallback(data, seed)


def feature_value(token: str) -> tuple[str, float | None]:
    """Split ``name:value`` into its name and value.

    A bare name has value 1. A token with more than one colon yields
    ``None`` as its value. A NaN value is an error.
    """
    pieces = tokenize(":", token)
    name = pieces[0] if pieces else ""
    if len(pieces) <= 1:
        return name, 1.0
    if len(pieces) == 2:
        value = float_of(pieces[1])
        if math.isnan(value):
            raise ValueError(f"NaN value for feature: {name}")
        return name, value
    logger.warning("example with a weird name: %s", token)
    return name, None


@dataclass
class ExampleParser:
    """Turns text lines of the form ``label weight tag|namespace features`` into examples."""

    uniform_hash: HashFunction
    hash_base: int
    mask: int
    hash_mode: str = "strings"
    audit: bool = False

    def __post_init__(self) -> None:
        if self.hash_mode not in HASH_MODES:
            raise ValueError(f"Unknown hash function: {self.hash_mode}. Exiting")

    def _hash(self, text: str, seed: int) -> int:
        if self.hash_mode == "strings":
            return hash_string(text, seed, self.uniform_hash)
        return self.uniform_hash(text.encode(), seed)

    def _parse_label_space(self, example: Example, label_space: str) -> None:
        tab = label_space.find("\t")
        if tab >= 0:
            label_space = label_space[tab + 1 :]
        words = tokenize(" ", label_space)
        if words and not label_space.endswith(" "):
            example.tag = words.pop()
        parse_label(example.ld, words)

    def parse(self, line: str) -> Example:
        """Parse one line (a trailing newline is ignored) into an example."""
        if line.endswith("\n"):
            line = line[:-1]
        example = Example(ld=default_label())
        channels = tokenize("|", line)
        if line.startswith("|"):
            feature_channels = channels
        else:
            self._parse_label_space(example, channels[0] if channels else "")
            feature_channels = channels[1:]

        for channel in feature_channels:
            words = tokenize(" ", channel)
            if not words:
                continue
            if channel[0] != " ":
                name, value = feature_value(words[0])
                channel_v = 1.0 if value is None else value
                index = name.encode()[0] if name else 0
                space = name
                channel_hash = self._hash(name, self.hash_base)
                feature_words = words[1:]
            else:
                channel_v = 1.0
                index = ANONYMOUS_NAMESPACE
                space = " "
                channel_hash = 0
                feature_words = words

            for word in feature_words:
                name, value = feature_value(word)
                v = (0.0 if value is None else value) * channel_v
                word_hash = self._hash(name, channel_hash) & self.mask
                example.add_feature(index, Feature(v, word_hash))
                if self.audit:
                    example.audit_features.setdefault(index, []).append(
                        AuditData(space, name, word_hash, v)
                    )
        return example