"""The weight table: allocation, initialization and the model file format."""

from __future__ import annotations

import math
import os
import random
import struct
from array import array
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from vwcore.loss import LossFunction

VERSION = "6.1"
"""Version string written to, and required of, model files."""

_SIZE = struct.Struct("<Q")
_INT = struct.Struct("<i")
_DOUBLE = struct.Struct("<d")
_RECORD = struct.Struct("<If")
_U32 = 0xFFFFFFFF


def _stride_for(count: int) -> int:
    """Slots per index for ``2 * count + 1`` weights, rounded up to a power of two."""
    return 1 << math.ceil(math.log(count * 2 + 1) / math.log(2))


def _zeros(size: int) -> array:
    return array("f", bytes(4 * size))


@dataclass
class RegressorConfig:
    """Settings that shape the weight table and travel in the model header."""

    num_bits: int = 18
    thread_bits: int = 0
    partition_bits: int = 0
    stride: int = 1
    pairs: list[str] = field(default_factory=list)
    rank: int = 0
    lda: int = 0
    ngram: int = 0
    skips: int = 0
    min_label: float = 0.0
    max_label: float = 1.0
    default_bits: bool = True
    random_weights: bool = False
    initial_weight: float = 0.0
    adaptive: bool = False
    lda_D: float = 10000.0
    lda_rho: float = 0.1
    initial_t: float = 1.0
    save_per_pass: bool = False
    version: str = VERSION
    thread_mask: int = 0

    def num_threads(self) -> int:
        """Number of learning threads, each owning a slice of the table."""
        return 1 << self.thread_bits

    def length(self) -> int:
        """Number of feature indices in the table."""
        return 1 << self.num_bits


class _Reader:
    """Sequential reader over the bytes of a model file."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, count: int) -> bytes:
        if self._pos + count > len(self._data):
            raise ValueError("model file is truncated")
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def unpack(self, layout: struct.Struct):
        return layout.unpack(self.take(layout.size))[0]

    def records(self) -> Iterator[tuple[int, float]]:
        while len(self._data) - self._pos >= _RECORD.size:
            yield _RECORD.unpack_from(self._data, self._pos)
            self._pos += _RECORD.size


@dataclass
class Regressor:
    """Weight vectors (one per thread), optional regularizers and the loss in use."""

    config: RegressorConfig
    weight_vectors: list[array] | None = None
    regularizers: list[array] | None = None
    loss: LossFunction | None = None
    with_regularizers: bool = False
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def initialize(
        cls,
        config: RegressorConfig,
        with_regularizers: bool = False,
        rng: random.Random | None = None,
    ) -> Regressor:
        """Allocate and initialize a table according to ``config``."""
        regressor = cls(
            config,
            with_regularizers=with_regularizers,
            rng=rng if rng is not None else random.Random(),
        )
        regressor._allocate()
        return regressor

    def _allocate(self) -> None:
        c = self.config
        length = c.length()
        c.thread_mask = c.stride * (length >> c.thread_bits) - 1
        num_threads = c.num_threads()
        size = c.stride * length // num_threads
        rand = self.rng.random

        vectors: list[array] = []
        regularizers: list[array] | None = [] if self.with_regularizers else None
        for _ in range(num_threads):
            weights = _zeros(size)
            if c.random_weights:
                if c.rank > 0:
                    for j in range(size):
                        weights[j] = 0.1 * rand() - 0.05
                else:
                    for j in range(length // num_threads):
                        weights[j] = rand() - 0.5
            if regularizers is not None:
                regularizers.append(_zeros(2 * length // num_threads))
            if c.initial_weight != 0.0:
                for j in range(0, size, c.stride):
                    weights[j] = c.initial_weight
            if c.lda:
                scale = c.lda_D / c.lda / length * 200
                for j in range(0, size, c.stride):
                    for k in range(c.lda):
                        weights[j + k] = (-math.log(1.0 - rand()) + 1.0) * scale
                    weights[j + c.lda] = c.initial_t
            if c.adaptive:
                for j in range(1, size, c.stride):
                    weights[j] = 1.0
            vectors.append(weights)
        self.weight_vectors = vectors
        self.regularizers = regularizers

    def read_vector(self, path: str, initialized: bool = False, reg_vector: bool = False) -> bool:
        """Load a binary model (or regularizer) file into the table.

        Returns whether the table is initialized afterwards.
        """
        try:
            with open(path, "rb") as source:
                data = source.read()
        except OSError as exc:
            raise OSError(f"can't open {path} ... exiting.") from exc

        c = self.config
        reader = _Reader(data)
        v_length = reader.unpack(_SIZE)
        found_version = reader.take(v_length).split(b"\0", 1)[0].decode("latin-1")
        if found_version != c.version:
            raise ValueError("source has possibly incompatible version!")

        c.min_label = reader.unpack(_DOUBLE)
        c.max_label = reader.unpack(_DOUBLE)

        local_num_bits = reader.unpack(_SIZE)
        if not initialized:
            if not c.default_bits and c.num_bits != local_num_bits:
                raise ValueError("Wrong number of bits for source!")
            c.default_bits = False
            c.num_bits = local_num_bits
        elif local_num_bits != c.num_bits:
            raise ValueError("can't combine sources with different feature number!")

        local_thread_bits = reader.unpack(_SIZE)
        if not initialized:
            c.thread_bits = local_thread_bits
            c.partition_bits = c.thread_bits
        elif local_thread_bits != c.thread_bits:
            raise ValueError("can't combine sources trained with different numbers of threads!")

        pair_count = reader.unpack(_INT)
        local_pairs = [reader.take(2).decode("latin-1") for _ in range(max(pair_count, 0))]

        local_rank = reader.unpack(_SIZE)
        local_lda = reader.unpack(_SIZE)
        if initialized:
            raise ValueError("can't combine regressors")
        c.rank = local_rank
        c.lda = local_lda

        if c.rank > 0:
            c.stride = _stride_for(c.rank)
            c.random_weights = True
        if c.lda > 0:
            c.stride = _stride_for(c.lda)
            c.random_weights = True

        c.pairs = local_pairs
        self._allocate()

        c.ngram = reader.unpack(_SIZE)
        c.skips = reader.unpack(_SIZE)

        if reg_vector and self.regularizers is None:
            raise ValueError("no regularizer table to load into")
        weights = self.weight_vectors
        num_threads = c.num_threads()
        stride = c.stride
        for index, w in reader.records():
            if c.rank != 0:
                weights[index % num_threads][index // num_threads] = w
            elif c.lda == 0:
                if reg_vector:
                    self.regularizers[index % num_threads][index // num_threads] = w
                    if index % 2 == 1:
                        # Odd entries hold the prior mean; the even one before is its variance.
                        half = index // 2
                        weights[half % num_threads][(half * stride) // num_threads] = w
                else:
                    weights[index % num_threads][(index * stride) // num_threads] += w
            else:
                weights[index % num_threads][index // num_threads] += w
        return True

    def _header(self, as_text: bool) -> bytes:
        c = self.config
        if not as_text:
            out = bytearray()
            version = c.version.encode("latin-1") + b"\0"
            out += _SIZE.pack(len(version)) + version
            out += _DOUBLE.pack(c.min_label) + _DOUBLE.pack(c.max_label)
            out += _SIZE.pack(c.num_bits) + _SIZE.pack(c.thread_bits)
            out += _INT.pack(len(c.pairs))
            for pair in c.pairs:
                out += pair.encode("latin-1")[:2].ljust(2, b"\0")
            out += _SIZE.pack(c.rank) + _SIZE.pack(c.lda)
            out += _SIZE.pack(c.ngram) + _SIZE.pack(c.skips)
            return bytes(out)
        lines = [
            f"Version {c.version}\n",
            f"Min label:{c.min_label:f} max label:{c.max_label:f}\n",
            f"bits:{c.num_bits} thread_bits:{c.thread_bits}\n",
        ]
        lines.extend(f"{pair} " for pair in c.pairs)
        if c.pairs:
            lines.append("\n")
        lines.append(f"ngram:{c.ngram} skips:{c.skips}\nindex:weight pairs:\n")
        lines.append(f"rank:{c.rank}\n")
        lines.append(f"lda:{c.lda}\n")
        return "".join(lines).encode("latin-1")

    def _body(self, as_text: bool, reg_vector: bool) -> Iterable[bytes]:
        c = self.config
        num_threads = c.num_threads()
        stride = c.stride
        length = (c.length() * (2 if reg_vector else 1)) & _U32
        weights = self.weight_vectors
        for i in range(length):
            if c.lda == 0 and c.rank == 0:
                if reg_vector:
                    v = self.regularizers[i % num_threads][i // num_threads]
                else:
                    v = weights[i % num_threads][stride * (i // num_threads)]
                if v != 0.0:
                    yield _RECORD.pack(i, v) if not as_text else f"{i}:{v:f}\n".encode()
                continue
            count = c.rank * 2 + 1 if c.rank != 0 else c.lda
            row = []
            for k in range(count):
                v = weights[i % num_threads][(stride * i + k) // num_threads]
                if not as_text:
                    row.append(_RECORD.pack((stride * i + k) & _U32, v))
                elif c.rank != 0:
                    row.append(f"{v:f} ".encode())
                else:
                    row.append(f"{v + c.lda_rho:f} ".encode())
            if as_text:
                row.append(b"\n")
            yield b"".join(row)

    def dump(self, path: str, as_text: bool = False, reg_vector: bool = False) -> None:
        """Write the table to ``path``; an empty path writes nothing.

        The file is written under ``path + '.writing'`` and then renamed.
        """
        if path == "":
            return
        if self.weight_vectors is None or (reg_vector and self.regularizers is None):
            raise ValueError("no weights to dump")
        start_name = path + ".writing"
        try:
            out = open(start_name, "wb")
        except OSError as exc:
            raise OSError(f"can't open: {start_name} for writing, exiting") from exc
        with out:
            out.write(self._header(as_text))
            for chunk in self._body(as_text, reg_vector):
                out.write(chunk)
        os.replace(start_name, path)

    def save_per_pass(self, path: str, current_pass: int) -> None:
        """Dump the model as ``path.<pass>`` when per-pass saving is on."""
        if self.config.save_per_pass:
            # The name is bounded to three characters past the base name.
            filename = f"{path}.{current_pass}"[: len(path) + 3]
            self.dump(filename)

    def finalize(
        self,
        path: str,
        text_path: str = "",
        regularizer_path: str = "",
        regularizer_text_path: str = "",
    ) -> None:
        """Write every requested output, then release the table."""
        self.dump(path, False)
        self.dump(text_path, True)
        self.dump(regularizer_path, False, True)
        self.dump(regularizer_text_path, True, True)
        self.weight_vectors = None
        self.regularizers = None


def parse_regressor_args(
    config: RegressorConfig,
    initial_regressors: Iterable[str] = (),
    regularizer_input: str = "",
    skip_init: bool = False,
    rng: random.Random | None = None,
) -> Regressor:
    """Build the regressor from initial model files or fresh weights.

    With ``skip_init`` and no files to read, no table is allocated.
    """
    regressor = Regressor(
        config,
        with_regularizers=bool(regularizer_input),
        rng=rng if rng is not None else random.Random(),
    )
    initialized = False
    for path in initial_regressors:
        initialized = regressor.read_vector(path, initialized, False)
    if regularizer_input:
        initialized = regressor.read_vector(regularizer_input, initialized, True)
    if not initialized and not skip_init:
        regressor._allocate()
    return regressor