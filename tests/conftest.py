from __future__ import annotations

import collections

import pytest

from resplink.io.sio import Connection


class FakeTransport:
    """A scripted in-memory transport.

    ``chunks`` are handed out by :py:meth:`recv` one at a time. An empty
    queue raises ``BlockingIOError`` (or returns ``b""`` if ``eof`` is set).
    ``send_limit`` caps how many bytes a single :py:meth:`send` accepts.
    """

    def __init__(self, *chunks: bytes, send_limit: int | None = None, fd: int = 7):
        self.chunks = collections.deque(chunks)
        self.sent = bytearray()
        self.calls: list[str] = []
        self.send_limit = send_limit
        self.fd = fd
        self.eof = False
        self.closed = False
        self.pending_error: OSError | None = None
        self.recv_error: BaseException | None = None
        self.send_error: BaseException | None = None

    def feed(self, *chunks: bytes):
        self.chunks.extend(chunks)

    def fileno(self) -> int:
        return self.fd

    def sendall(self, data) -> None:
        self.calls.append("sendall")
        if self.send_error is not None:
            raise self.send_error
        self.sent.extend(bytes(data))

    def send(self, data) -> int:
        self.calls.append("send")
        if self.send_error is not None:
            raise self.send_error
        data = bytes(data)
        if self.send_limit is not None:
            data = data[: self.send_limit]
        self.sent.extend(data)
        return len(data)

    def recv(self, size: int) -> bytes:
        self.calls.append("recv")
        if self.recv_error is not None:
            raise self.recv_error
        if not self.chunks:
            if self.eof:
                return b""
            raise BlockingIOError()
        chunk = self.chunks.popleft()
        if len(chunk) > size:
            self.chunks.appendleft(chunk[size:])
            chunk = chunk[:size]
        return chunk

    def error(self) -> OSError | None:
        return self.pending_error

    def close(self) -> None:
        self.calls.append("close")
        self.closed = True


class FakeReactor:
    """Records every registration change the connection asks for."""

    def __init__(self):
        self.registered: dict = {}
        self.history: list[tuple[str, int]] = []

    def register(self, fileobj, events, data):
        if fileobj in self.registered:
            raise KeyError(fileobj)
        self.registered[fileobj] = (events, data)
        self.history.append(("register", events))

    def modify(self, fileobj, events, data):
        self.registered[fileobj] = (events, data)
        self.history.append(("modify", events))

    def unregister(self, fileobj):
        del self.registered[fileobj]
        self.history.append(("unregister", 0))

    @property
    def interests(self) -> list[int]:
        return [events for _, events in self.history]

    def fire(self, fileobj, mask: int | None = None):
        events, callback = self.registered[fileobj]
        callback(events if mask is None else mask)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def connection(transport) -> Connection:
    return Connection(transport)


@pytest.fixture
def reactor() -> FakeReactor:
    return FakeReactor()


@pytest.fixture
def make_transport():
    return FakeTransport
