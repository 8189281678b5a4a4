from __future__ import annotations

import datetime
from typing import Iterable, Iterator

import attr

from resplink.sansio.exceptions import DataError
from resplink.sansio.types import EncodableT

__all__ = (
    "Command",
    "Milliseconds",
    "Seconds",
    "UnixTime",
    "UnixTimeMs",
    "encode",
    "pack_command",
    "pack_commands",
)


@attr.define(frozen=True)
class Seconds:
    """A duration sent as a whole number of seconds."""

    value: datetime.timedelta

    def encode(self) -> bytes:
        return b"%d" % (self.value // datetime.timedelta(seconds=1))


@attr.define(frozen=True)
class Milliseconds:
    """A duration sent as a whole number of milliseconds."""

    value: datetime.timedelta

    def encode(self) -> bytes:
        return b"%d" % (self.value // datetime.timedelta(milliseconds=1))


@attr.define(frozen=True)
class UnixTime:
    """A point in time sent as decimal UNIX seconds."""

    value: datetime.datetime

    def encode(self) -> bytes:
        return b"%d" % int(self.value.timestamp())


@attr.define(frozen=True)
class UnixTimeMs:
    """A point in time sent as decimal UNIX milliseconds."""

    value: datetime.datetime

    def encode(self) -> bytes:
        return b"%d" % round(self.value.timestamp() * 1000)


_TEMPORAL = (Seconds, Milliseconds, UnixTime, UnixTimeMs)

_converters = {
    bytes: lambda val: val,
    bytearray: bytes,
    memoryview: lambda val: val.tobytes(),
    str: lambda val: val.encode(),
    int: lambda val: b"%d" % val,
    float: lambda val: repr(val).encode(),
    datetime.timedelta: lambda val: Seconds(val).encode(),
    datetime.datetime: lambda val: UnixTime(val).encode(),
    **{cls: lambda val: val.encode() for cls in _TEMPORAL},
}


def encode(val: EncodableT) -> bytes:
    """Encode a single command argument into its wire form."""
    cls = val.__class__
    if cls not in _converters:
        raise DataError(
            f"Invalid type given: {cls.__name__!r}. "
            f"Convert to one of {(*(t.__name__ for t in _converters),)} first."
        )
    return _converters[cls](val)


def _encode_args(args: Iterable[EncodableT]) -> tuple[bytes, ...]:
    return tuple(encode(a) for a in args)


@attr.define(frozen=True)
class Command:
    """An encoded command: its name followed by its arguments, all as bytes.

    Commands are immutable; :py:meth:`arg` returns a new command.

    Examples:
        >>> Command.of("SET", "foo", 1).args
        (b'SET', b'foo', b'1')
        >>> Command.of("EXPIRE", "foo", Milliseconds(datetime.timedelta(seconds=2))).args
        (b'EXPIRE', b'foo', b'2000')
    """

    args: tuple[bytes, ...] = attr.field(converter=_encode_args)

    @args.validator
    def _check_name(self, attribute, value):
        if not value:
            raise DataError("A command needs at least a name.")

    @classmethod
    def of(cls, name: str | bytes, *args: EncodableT) -> Command:
        return cls((name, *args))

    @property
    def name(self) -> bytes:
        return self.args[0]

    def arg(self, value: EncodableT) -> Command:
        """Return a copy of this command with one more argument."""
        return Command((*self.args, value))

    def pack(self) -> bytes:
        return bytes(pack_command(self))

    def __len__(self) -> int:
        return len(self.args)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.args)

    def __str__(self) -> str:
        return " ".join(a.decode("utf-8", errors="replace") for a in self.args)


def pack_command(command: Command, *, buf: bytearray | None = None) -> bytearray:
    """Pack a command into the multi-bulk wire format.

    If ``buf`` is given the packed bytes are appended to it.
    """
    buf = bytearray() if buf is None else buf
    _extend = buf.extend
    _extend(b"*%d\r\n" % len(command.args))
    for barg in command.args:
        _extend(b"$%d\r\n%s\r\n" % (len(barg), barg))
    return buf


def pack_commands(commands: Iterable[Command]) -> bytearray:
    """Pack a series of commands into a single buffer for one write."""
    output = bytearray()
    for cmd in commands:
        pack_command(cmd, buf=output)
    return output
