import socket

import pytest

from vwcore.multisource import (
    GlobalPrediction,
    Prediction,
    blocking_get_global_prediction,
    blocking_get_prediction,
    really_read,
    send_global_prediction,
    send_prediction,
)


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    with left, right:
        yield left, right


class ShortWriter:
    def send(self, data):
        return len(data) - 1


class BrokenReader:
    def recv(self, size):
        raise OSError("gone")


def test_prediction_wire_size_and_round_trip():
    prediction = Prediction(42, 0.25)
    data = prediction.pack()
    assert len(data) == 12
    assert Prediction.unpack(data) == prediction


def test_global_prediction_wire_size_and_round_trip():
    prediction = GlobalPrediction(1.5, -0.75)
    data = prediction.pack()
    assert len(data) == 8
    assert GlobalPrediction.unpack(data) == prediction


def test_unpack_wrong_length():
    with pytest.raises(ValueError):
        Prediction.unpack(b"\x00" * 5)


def test_prediction_over_socket(pair):
    left, right = pair
    send_prediction(left, Prediction(7, 0.5))
    assert blocking_get_prediction(right) == Prediction(7, 0.5)


def test_global_prediction_over_socket(pair):
    left, right = pair
    send_global_prediction(left, GlobalPrediction(0.125, 2.0))
    assert blocking_get_global_prediction(right) == GlobalPrediction(0.125, 2.0)


def test_closed_peer_yields_none(pair):
    left, right = pair
    left.close()
    assert blocking_get_prediction(right) is None


def test_really_read_joins_pieces(pair):
    left, right = pair
    left.sendall(b"abc")
    left.sendall(b"def")
    assert really_read(right, 6) == b"abcdef"


def test_really_read_partial_then_close(pair):
    left, right = pair
    left.sendall(b"ab")
    left.close()
    assert really_read(right, 6) == b""


def test_really_read_error():
    with pytest.raises(ConnectionError):
        really_read(BrokenReader(), 4)


def test_short_write_raises():
    with pytest.raises(ConnectionError):
        send_prediction(ShortWriter(), Prediction(1, 0.5))
    with pytest.raises(ConnectionError):
        send_global_prediction(ShortWriter(), GlobalPrediction(0.5, 1.0))