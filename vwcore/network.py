"""Opening a connection to a peer learner."""

from __future__ import annotations

import logging
import socket

from vwcore.primitives import int_of

logger = logging.getLogger(__name__)

DEFAULT_PORT = 26542


def split_host(host: str) -> tuple[str, int]:
    """Split ``name[:port]`` into a host name and a 16-bit port."""
    name, colon, port_text = host.partition(":")
    if not colon:
        return host, DEFAULT_PORT
    return name, int_of(port_text) & 0xFFFF


def open_socket(host: str) -> socket.socket:
    """Connect to ``name[:port]`` over TCP and send the one-byte greeting."""
    name, port = split_host(host)
    try:
        address = socket.gethostbyname(name)
    except OSError as exc:
        raise OSError(f"can't resolve hostname: {host}") from exc
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.connect((address, port))
    except OSError as exc:
        sock.close()
        raise ConnectionError(f"can't connect to: {host}:{port}") from exc
    try:
        sent = sock.send(b"\0")
    except OSError:
        sent = 0
    if sent < 1:
        logger.error("write failed!")
    return sock