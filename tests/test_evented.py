from __future__ import annotations

import pytest

from resplink.io.evented import AsyncConnection
from resplink.io.reactor import EVENT_READ, EVENT_WRITE
from resplink.sansio import exceptions
from resplink.sansio.writer import Command

READ = EVENT_READ
READ_WRITE = EVENT_READ | EVENT_WRITE
PING = Command.of("PING")


@pytest.fixture
def errors() -> list:
    return []


@pytest.fixture
def pushed() -> list:
    return []


@pytest.fixture
def conn(transport, reactor, errors, pushed) -> AsyncConnection:
    return AsyncConnection(
        transport, reactor, on_error=errors.append, on_push=pushed.append
    )


def test_registers_read_on_construction(conn, transport, reactor):
    assert reactor.history == [("register", READ)]
    assert conn.watching == READ
    assert conn.is_connected
    assert transport.calls == []


def test_send_does_no_io(conn, transport, reactor):
    conn.send(PING, lambda r: None)
    conn.send(PING, lambda r: None)
    assert transport.calls == []
    assert conn.pending == 2
    assert conn.watching == READ_WRITE
    # A second pending write does not re-register.
    assert reactor.history == [("register", READ), ("modify", READ_WRITE)]


def test_watch_set_sequence(conn, transport, reactor):
    replies = []
    conn.send(PING, replies.append)
    reactor.fire(transport)
    assert transport.sent == PING.pack()
    assert reactor.interests == [READ, READ_WRITE, READ]

    transport.feed(b"+PONG\r\n")
    reactor.fire(transport)
    assert [r.as_status() for r in replies] == ["PONG"]
    assert reactor.interests == [READ, READ_WRITE, READ]
    assert conn.pending == 0


def test_partial_writes_keep_write_interest(make_transport, reactor):
    transport = make_transport(send_limit=4)
    conn = AsyncConnection(transport, reactor)
    conn.send(Command.of("SET", "foo", "bar"), lambda r: None)
    expected = Command.of("SET", "foo", "bar").pack()

    reactor.fire(transport, EVENT_WRITE)
    assert bytes(transport.sent) == expected[:4]
    assert conn.watching == READ_WRITE

    while conn.watching & EVENT_WRITE:
        reactor.fire(transport, EVENT_WRITE)
    assert bytes(transport.sent) == expected
    assert reactor.interests == [READ, READ_WRITE, READ]
    assert transport.calls.count("send") > 1


def test_write_would_block(make_transport, reactor):
    transport = make_transport()
    transport.send_error = BlockingIOError()
    conn = AsyncConnection(transport, reactor)
    conn.send(PING, lambda r: None)
    reactor.fire(transport, EVENT_WRITE)
    assert conn.is_connected
    assert conn.watching == READ_WRITE


def test_replies_delivered_fifo(conn, transport, reactor):
    seen = []
    for i in range(3):
        conn.send(Command.of("ECHO", i), lambda r, i=i: seen.append((i, r.as_string())))
    reactor.fire(transport, EVENT_WRITE)
    transport.feed(b"$1\r\n0\r\n$1\r\n1", b"\r\n$1\r\n2\r\n")
    reactor.fire(transport, EVENT_READ)
    assert seen == [(0, b"0")]
    reactor.fire(transport, EVENT_READ)
    assert seen == [(0, b"0"), (1, b"1"), (2, b"2")]


def test_reply_split_across_events(conn, transport, reactor):
    replies = []
    conn.send(PING, replies.append)
    reactor.fire(transport)
    transport.feed(b"+PO")
    reactor.fire(transport, EVENT_READ)
    assert replies == []
    transport.feed(b"NG\r\n")
    reactor.fire(transport, EVENT_READ)
    assert replies[0].as_status() == "PONG"


def test_error_reply_is_delivered(conn, transport, reactor):
    replies = []
    conn.send(PING, replies.append)
    reactor.fire(transport)
    transport.feed(b"-ERR nope\r\n")
    reactor.fire(transport)
    assert replies[0].as_error() == exceptions.RemoteError("nope")
    assert conn.is_connected


def test_unsolicited_reply_goes_to_on_push(conn, transport, reactor, pushed):
    transport.feed(b"*3\r\n$7\r\nmessage\r\n$2\r\nch\r\n$2\r\nhi\r\n")
    reactor.fire(transport)
    assert pushed[0].as_string_array() == [b"message", b"ch", b"hi"]


def test_unsolicited_reply_dropped_without_handler(transport, reactor):
    conn = AsyncConnection(transport, reactor)
    transport.feed(b"+OK\r\n")
    reactor.fire(transport)
    assert conn.is_connected


@pytest.mark.parametrize(
    argnames="setup,exctype",
    argvalues=[
        (lambda t: setattr(t, "eof", True), exceptions.ConnectionLost),
        (lambda t: t.feed(b"?bad\r\n"), exceptions.InvalidResponse),
        (lambda t: setattr(t, "recv_error", ConnectionResetError()), exceptions.ConnectionLost),
    ],
    ids=["peer-closed", "malformed", "reset"],
)
def test_read_failure_tears_down(conn, transport, reactor, errors, setup, exctype):
    waiter_errors = []
    conn.send(PING, lambda r: None, waiter_errors.append)
    conn.send(PING, lambda r: None, waiter_errors.append)
    setup(transport)
    reactor.fire(transport, EVENT_READ)

    assert not conn.is_connected
    assert transport.closed
    assert reactor.history[-1] == ("unregister", 0)
    assert reactor.registered == {}
    assert len(errors) == 1 and isinstance(errors[0], exctype)
    assert len(waiter_errors) == 2
    assert all(type(e) is exceptions.ConnectionLost for e in waiter_errors)
    assert conn.pending == 0


def test_write_failure_tears_down(conn, transport, reactor, errors):
    waiter_errors = []
    conn.send(PING, lambda r: None, waiter_errors.append)
    transport.send_error = BrokenPipeError()
    reactor.fire(transport)
    assert not conn.is_connected
    assert isinstance(errors[0], exceptions.ConnectionLost)
    assert isinstance(errors[0].__cause__, BrokenPipeError)
    assert len(waiter_errors) == 1


def test_callback_failure_tears_down(conn, transport, reactor, errors):
    def on_reply(reply):
        raise RuntimeError("handler failed")

    conn.send(PING, on_reply)
    reactor.fire(transport)
    transport.feed(b"+PONG\r\n")
    reactor.fire(transport)
    assert not conn.is_connected
    assert isinstance(errors[0], RuntimeError)


def test_events_after_teardown_are_ignored(conn, transport, reactor, errors):
    transport.eof = True
    handle_events = reactor.registered[transport][1]
    handle_events(EVENT_READ)
    calls, history = list(transport.calls), list(reactor.history)

    transport.eof = False
    transport.feed(b"+OK\r\n")
    handle_events(READ_WRITE)
    conn.disconnect()
    assert transport.calls == calls
    assert reactor.history == history
    assert len(errors) == 1


def test_send_after_teardown(conn, transport, reactor):
    transport.eof = True
    reactor.fire(transport)
    with pytest.raises(exceptions.PoisonedSessionError) as excinfo:
        conn.send(PING, lambda r: None)
    assert isinstance(excinfo.value.__cause__, exceptions.ConnectionLost)


def test_disconnect(conn, transport, reactor, errors):
    waiter_errors = []
    conn.send(PING, lambda r: None, waiter_errors.append)
    conn.disconnect()
    assert not conn.is_connected
    assert transport.closed
    assert reactor.registered == {}
    assert errors == []
    assert len(waiter_errors) == 1
    with pytest.raises(exceptions.PoisonedSessionError):
        conn.send(PING, lambda r: None)


def test_failing_waiter_error_handler_is_logged(conn, transport, reactor, errors, caplog):
    def on_error(exc):
        raise RuntimeError("handler failed")

    conn.send(PING, lambda r: None, on_error)
    transport.eof = True
    reactor.fire(transport, EVENT_READ)
    assert len(errors) == 1
    assert "Error handler for" in caplog.text


def test_failing_connection_error_handler_is_logged(transport, reactor, caplog):
    def on_error(exc):
        raise RuntimeError("handler failed")

    conn = AsyncConnection(transport, reactor, on_error=on_error)
    transport.eof = True
    reactor.fire(transport, EVENT_READ)
    assert not conn.is_connected
    assert transport.closed
    assert reactor.registered == {}
    assert "Error handler for" in caplog.text
    assert "handler failed" in caplog.text


def test_transport_error_on_construction(make_transport, reactor):
    transport = make_transport()
    transport.pending_error = OSError(111, "Connection refused")
    with pytest.raises(exceptions.ConnectError):
        AsyncConnection(transport, reactor)
    assert reactor.history == []
    assert transport.closed
