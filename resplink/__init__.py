# flake8: noqa
from __future__ import annotations

from resplink.client import Redis, RedisPipeline
from resplink.io.evented import AsyncConnection
from resplink.io.reactor import EVENT_READ, EVENT_WRITE, Reactor, SelectorReactor
from resplink.io.sio import Connection, Pipeline
from resplink.io.transport import SocketTransport, Transport
from resplink.sansio.exceptions import (
    ConnectError,
    ConnectionLost,
    DataError,
    InvalidResponse,
    PoisonedSessionError,
    ProtocolError,
    RedisError,
    RedisTimeoutError,
    RemoteError,
    ReplyReleasedError,
    TypeMismatch,
)
from resplink.sansio.protocol import AddressInfo, SocketInfo
from resplink.sansio.reader import ReplyReader, decode
from resplink.sansio.reply import Reply, ReplyType
from resplink.sansio.writer import (
    Command,
    Milliseconds,
    Seconds,
    UnixTime,
    UnixTimeMs,
    pack_command,
    pack_commands,
)

__version__ = "0.1.0"
