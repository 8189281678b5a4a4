from __future__ import annotations

import pytest

from resplink.sansio.writer import Command

N = 1000


def _bulk(value: bytes) -> bytes:
    return b"$%d\r\n%s\r\n" % (len(value), value)


def _array(*elements: bytes) -> bytes:
    return b"*%d\r\n%s" % (len(elements), b"".join(elements))


payloads = {
    "status": b"+OK\r\n",
    "integer": b":1234567\r\n",
    "bulk-small": _bulk(b"value"),
    "bulk-large": _bulk(b"x" * 1024 * 1024),
    "array-flat": _array(*(_bulk(b"member:%d" % i) for i in range(N))),
    "array-nested": _array(
        *(_array(_bulk(b"field:%d" % i), b":%d\r\n" % i, b"$-1\r\n") for i in range(N))
    ),
}

commands = {
    "get": Command.of("GET", "key:1"),
    "set": Command.of("SET", "key:1", b"x" * 64, "EX", 600),
    "mget": Command.of("MGET", *(f"key:{i}" for i in range(N))),
}


@pytest.fixture(params=list(payloads))
def payload(request):
    return request.param, payloads[request.param]


@pytest.fixture(params=list(commands))
def command(request):
    return request.param, commands[request.param]


@pytest.fixture
def stream():
    """One read buffer holding N pipelined replies."""
    return b"".join(_bulk(b"reply:%d" % i) for i in range(N))
