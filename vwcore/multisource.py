"""Wire records exchanged between cooperating learners, and blocking socket I/O."""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

MULTINDEX = 5
"""Namespace that receives features gathered from several sources."""

_PREDICTION = struct.Struct("<Qf")
_GLOBAL_PREDICTION = struct.Struct("<ff")


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    if len(data) != layout.size:
        raise ValueError(f"{what} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack(data)


@dataclass
class Prediction:
    """A numbered prediction sent by one source."""

    example_number: int
    p: float

    def pack(self) -> bytes:
        """Packed wire form: unsigned 64-bit number then a float."""
        return _PREDICTION.pack(self.example_number, self.p)

    @classmethod
    def unpack(cls, data: bytes) -> Prediction:
        """Decode the wire form."""
        number, p = _unpack(_PREDICTION, data, "prediction")
        return cls(number, p)


@dataclass
class GlobalPrediction:
    """A combined prediction and its weight."""

    p: float
    weight: float

    def pack(self) -> bytes:
        """Wire form: two floats."""
        return _GLOBAL_PREDICTION.pack(self.p, self.weight)

    @classmethod
    def unpack(cls, data: bytes) -> GlobalPrediction:
        """Decode the wire form."""
        p, weight = _unpack(_GLOBAL_PREDICTION, data, "global prediction")
        return cls(p, weight)


def really_read(sock: socket.socket, count: int) -> bytes:
    """Read exactly ``count`` bytes; empty bytes if the peer closes first."""
    received = bytearray()
    while len(received) < count:
        try:
            chunk = sock.recv(count - len(received))
        except OSError as exc:
            raise ConnectionError(f"bad read on message from {sock!r}") from exc
        if not chunk:
            return b""
        received += chunk
    return bytes(received)


def blocking_get_prediction(sock: socket.socket) -> Prediction | None:
    """Wait for a prediction; ``None`` once the peer has closed."""
    data = really_read(sock, _PREDICTION.size)
    return Prediction.unpack(data) if len(data) == _PREDICTION.size else None


def blocking_get_global_prediction(sock: socket.socket) -> GlobalPrediction | None:
    """Wait for a global prediction; ``None`` once the peer has closed."""
    data = really_read(sock, _GLOBAL_PREDICTION.size)
    return GlobalPrediction.unpack(data) if len(data) == _GLOBAL_PREDICTION.size else None


def _send_all_or_fail(sock: socket.socket, data: bytes, what: str) -> None:
    try:
        sent = sock.send(data)
    except OSError as exc:
        raise ConnectionError(f"bad {what} write") from exc
    if sent < len(data):
        raise ConnectionError(f"bad {what} write")


def send_prediction(sock: socket.socket, prediction: Prediction) -> None:
    """Send a prediction in one write."""
    _send_all_or_fail(sock, prediction.pack(), "prediction")


def send_global_prediction(sock: socket.socket, prediction: GlobalPrediction) -> None:
    """Send a global prediction in one write."""
    _send_all_or_fail(sock, prediction.pack(), "global")