from __future__ import annotations

import datetime

import pytest

from resplink.client import Redis
from resplink.sansio import exceptions
from resplink.sansio.reply import Reply
from resplink.sansio.writer import Command, pack_commands


@pytest.fixture
def client(connection) -> Redis:
    return Redis(connection)


def _wire(*commands: tuple) -> bytes:
    return bytes(pack_commands(Command.of(*c) for c in commands))


@pytest.mark.parametrize(
    argnames="call,reply,expected,sent",
    argvalues=[
        (lambda r: r.ping(), b"+PONG\r\n", True, ("PING",)),
        (lambda r: r.echo("hi"), b"$2\r\nhi\r\n", b"hi", ("ECHO", "hi")),
        (lambda r: r.select(2), b"+OK\r\n", True, ("SELECT", 2)),
        (lambda r: r.dbsize(), b":12\r\n", 12, ("DBSIZE",)),
        (lambda r: r.flushdb(asynchronous=True), b"+OK\r\n", True, ("FLUSHDB", "ASYNC")),
        (lambda r: r.delete("a", "b"), b":2\r\n", 2, ("DEL", "a", "b")),
        (lambda r: r.exists("a"), b":0\r\n", 0, ("EXISTS", "a")),
        (lambda r: r.expire("a", 10), b":1\r\n", True, ("EXPIRE", "a", 10)),
        (lambda r: r.expire("a", datetime.timedelta(minutes=1)), b":1\r\n", True, ("EXPIRE", "a", 60)),
        (lambda r: r.pexpire("a", datetime.timedelta(seconds=1)), b":1\r\n", True, ("PEXPIRE", "a", 1000)),
        (lambda r: r.ttl("a"), b":-2\r\n", -2, ("TTL", "a")),
        (lambda r: r.persist("a"), b":0\r\n", False, ("PERSIST", "a")),
        (lambda r: r.keys("k*"), b"*2\r\n$2\r\nk1\r\n$2\r\nk2\r\n", [b"k1", b"k2"], ("KEYS", "k*")),
        (lambda r: r.type("a"), b"+hash\r\n", "hash", ("TYPE", "a")),
        (lambda r: r.rename("a", "b"), b"+OK\r\n", True, ("RENAME", "a", "b")),
        (lambda r: r.get("missing"), b"$-1\r\n", None, ("GET", "missing")),
        (lambda r: r.set("a", "b"), b"+OK\r\n", True, ("SET", "a", "b")),
        (lambda r: r.set("a", "b", ex=5, nx=True), b"$-1\r\n", False, ("SET", "a", "b", "EX", 5, "NX")),
        (lambda r: r.set("a", "b", px=datetime.timedelta(seconds=2)), b"+OK\r\n", True, ("SET", "a", "b", "PX", 2000)),
        (lambda r: r.incr("n"), b":1\r\n", 1, ("INCR", "n")),
        (lambda r: r.incrby("n", 5), b":6\r\n", 6, ("INCRBY", "n", 5)),
        (lambda r: r.append("a", "x"), b":3\r\n", 3, ("APPEND", "a", "x")),
        (lambda r: r.mget(["a", "b"]), b"*2\r\n$1\r\n1\r\n$-1\r\n", [b"1", None], ("MGET", "a", "b")),
        (lambda r: r.hset("h", "f", "v"), b":1\r\n", 1, ("HSET", "h", "f", "v")),
        (lambda r: r.hset("h", mapping={"f": 1, "g": 2}), b":2\r\n", 2, ("HSET", "h", "f", 1, "g", 2)),
        (lambda r: r.hget("h", "f"), b"$1\r\nv\r\n", b"v", ("HGET", "h", "f")),
        (lambda r: r.hgetall("h"), b"*4\r\n$1\r\nf\r\n$1\r\n1\r\n$1\r\ng\r\n$1\r\n2\r\n", {b"f": b"1", b"g": b"2"}, ("HGETALL", "h")),
        (lambda r: r.hdel("h", "f"), b":1\r\n", 1, ("HDEL", "h", "f")),
        (lambda r: r.sadd("s", 1, 2), b":2\r\n", 2, ("SADD", "s", 1, 2)),
        (lambda r: r.srem("s", 1), b":1\r\n", 1, ("SREM", "s", 1)),
        (lambda r: r.scard("s"), b":1\r\n", 1, ("SCARD", "s")),
        (lambda r: r.sismember("s", 2), b":1\r\n", True, ("SISMEMBER", "s", 2)),
        (lambda r: r.smembers("s"), b"*1\r\n$1\r\n2\r\n", {b"2"}, ("SMEMBERS", "s")),
    ],
)
def test_command(client, transport, call, reply, expected, sent):
    transport.feed(reply)
    assert call(client) == expected
    assert transport.sent == _wire(sent)


def test_encoding(connection, transport):
    client = Redis(connection, encoding="utf-8")
    transport.feed(b"$5\r\ncaf\xc3\xa9\r\n", b"*2\r\n$1\r\na\r\n$1\r\nb\r\n")
    assert client.get("k") == "café"
    assert client.smembers("s") == {"a", "b"}


def test_error_reply_raises(client, transport):
    transport.feed(b"-WRONGTYPE Operation against a key holding the wrong kind of value\r\n", b":1\r\n")
    with pytest.raises(exceptions.WrongTypeError):
        client.incr("h")
    assert client.incr("n") == 1


def test_execute_command_without_callback(client, transport):
    transport.feed(b"+OK\r\n")
    reply = client.execute_command("SET", "a", 1)
    assert isinstance(reply, Reply)
    assert reply.as_status() == "OK"


@pytest.mark.parametrize(
    argnames="call",
    argvalues=[
        lambda r: r.set("a", 1, nx=True, xx=True),
        lambda r: r.set("a", 1, ex=1, px=1),
        lambda r: r.hset("h"),
        lambda r: r.set("a", None),
    ],
)
def test_invalid_arguments_send_nothing(client, transport, call):
    with pytest.raises(exceptions.DataError):
        call(client)
    assert transport.calls == []
    assert client.connection.is_connected


def test_context_manager(client, transport):
    with client:
        pass
    assert transport.closed


class TestPipeline:
    def test_execute(self, client, transport):
        transport.feed(b"+OK\r\n$1\r\n1\r\n-WRONGTYPE bad\r\n:3\r\n")
        with client.pipeline() as pipe:
            pipe.set("a", 1).get("a").incr("h")
            pipe.execute_command("DBSIZE")
            assert len(pipe) == 4
            ok, value, error, raw = pipe.execute()
        assert ok is True
        assert value == b"1"
        assert error == exceptions.WrongTypeError("bad", code="WRONGTYPE")
        assert raw.as_integer() == 3
        assert transport.sent == _wire(("SET", "a", 1), ("GET", "a"), ("INCR", "h"), ("DBSIZE",))

    def test_raise_on_error(self, client, transport):
        transport.feed(b"+OK\r\n-ERR bad\r\n")
        pipe = client.pipeline().set("a", 1).incr("a")
        with pytest.raises(exceptions.RemoteError):
            pipe.execute(raise_on_error=True)
        assert len(pipe) == 0

    def test_connection_lost(self, client, transport):
        transport.feed(b"+OK\r\n")
        transport.eof = True
        results = client.pipeline().set("a", 1).get("a").get("b").execute()
        assert results[0] is True
        assert all(isinstance(r, exceptions.ConnectionLost) for r in results[1:])

    def test_close_flushes(self, client, transport):
        transport.feed(b"+OK\r\n", b":7\r\n")
        with client.pipeline() as pipe:
            pipe.set("a", 1)
        assert client.dbsize() == 7
