"""Shared fixtures: an in-memory stand-in for the math server."""
import socket
from typing import List

import pytest

from checked_math.common.protocol import Status, encode_response
from checked_math.server.adapter import handle_frame


class FakeServerSocket:
    """Client-side socket answering requests with the real adapter."""

    def __init__(self, server: "FakeServer", handshake: Status):
        self.server = server
        self.buffer = encode_response(handshake)
        self.sent: List[bytes] = []
        self.closed = False

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)
        response, _ = handle_frame(data)
        self.buffer += response

    def recv(self, size: int) -> bytes:
        chunk, self.buffer = self.buffer[:size], self.buffer[size:]
        return chunk

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.server.release(self)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class FakeServer:
    """Hands out fake sockets, admitting at most ``max_sessions`` at once."""

    def __init__(self, max_sessions: int = 6):
        self.max_sessions = max_sessions
        self.active: List[FakeServerSocket] = []
        self.connections = 0
        self.denied = 0

    def connect(self, address, timeout=None) -> FakeServerSocket:
        self.connections += 1
        if len(self.active) >= self.max_sessions:
            self.denied += 1
            return FakeServerSocket(self, Status.BUSY)
        sock = FakeServerSocket(self, Status.READY)
        self.active.append(sock)
        return sock

    def release(self, sock: FakeServerSocket) -> None:
        if sock in self.active:
            self.active.remove(sock)


@pytest.fixture
def fake_server(monkeypatch) -> FakeServer:
    """Route socket.create_connection to an in-memory server."""
    server = FakeServer()
    monkeypatch.setattr(socket, "create_connection", server.connect)
    return server
