from __future__ import annotations

import collections
import enum
import logging
from typing import Callable, Deque, Optional, Tuple

from resplink.io.reactor import EVENT_READ, EVENT_WRITE, Reactor
from resplink.io.transport import SocketTransport, Transport
from resplink.sansio import constants, exceptions, protocol
from resplink.sansio.reader import ReplyReader
from resplink.sansio.reply import Reply
from resplink.sansio.types import ErrorHandlerT
from resplink.sansio.writer import Command, pack_command

__all__ = ("AsyncConnection",)

logger = logging.getLogger(__name__)

ReplyHandlerT = Callable[[Reply], None]
_WaiterT = Tuple[Command, ReplyHandlerT, Optional[ErrorHandlerT]]


def _interest(pending_write: bool) -> int:
    # Read interest stays on for the whole session: the server may push
    # replies nobody asked for.
    return EVENT_READ | EVENT_WRITE if pending_write else EVENT_READ


class AsyncConnection:
    """A non-blocking RESP connection driven by an external reactor.

    The connection registers its transport with the reactor once, on
    construction, and from then on only does I/O from inside
    :py:meth:`handle_events`, which the reactor calls with the ready event
    mask. :py:meth:`send` only buffers the encoded command and queues its
    callbacks.

    The watched events follow the outbound buffer: read interest is always
    on while registered, write interest is on exactly while there are bytes
    left to send.

    Any failure while servicing a reactor callback tears the connection down:
    the transport is unregistered and closed, every pending command's
    ``on_error`` receives a :py:class:`~resplink.sansio.exceptions.ConnectionLost`,
    and the connection-level ``on_error`` handler is called once. Exceptions
    raised by those handlers are logged, never propagated to the reactor.
    Reactor callbacks arriving after that are ignored.
    """

    __slots__ = (
        "transport",
        "reactor",
        "address",
        "read_size",
        "on_error",
        "on_push",
        "_reader",
        "_outbuf",
        "_waiters",
        "_state",
        "_watching",
        "_exc",
        "__weakref__",
    )

    def __init__(
        self,
        transport: Transport,
        reactor: Reactor,
        *,
        on_error: ErrorHandlerT | None = None,
        on_push: ReplyHandlerT | None = None,
        address: protocol.AddressInfo | None = None,
        read_size: int = constants.DEFAULT_READ_SIZE,
    ):
        self.transport: Transport | None = transport
        self.reactor = reactor
        self.address = address or protocol.AddressInfo()
        self.read_size = read_size
        self.on_error = on_error
        self.on_push = on_push
        self._reader = ReplyReader()
        self._outbuf = bytearray()
        self._waiters: Deque[_WaiterT] = collections.deque()
        self._exc: BaseException | None = None
        self._state = _State.unregistered
        self._watching = 0

        err = transport.error()
        if err is not None:
            transport.close()
            self.transport = None
            raise protocol.connection_error(err, self.address) from err
        reactor.register(transport, EVENT_READ, self.handle_events)
        self._watching = EVENT_READ
        self._state = _State.registered

    @classmethod
    def open(
        cls,
        address: protocol.AddressInfo | str | None,
        reactor: Reactor,
        *,
        socket_info: protocol.SocketInfo | None = None,
        on_error: ErrorHandlerT | None = None,
        on_push: ReplyHandlerT | None = None,
    ) -> AsyncConnection:
        """Connect a non-blocking socket and register it with ``reactor``.

        If the address names a database, a ``SELECT`` is queued first; a
        failed ``SELECT`` tears the connection down through ``on_error``.

        Raises:
            :py:class:`~resplink.sansio.exceptions.ConnectError`
        """
        if address is None or isinstance(address, str):
            address = (
                protocol.AddressInfo.from_url(address)
                if address
                else protocol.AddressInfo()
            )
        socket_info = socket_info or protocol.SocketInfo()
        try:
            transport = SocketTransport.connect(address, socket_info, blocking=False)
        except OSError as e:
            raise protocol.connection_error(e, address) from e

        self = cls(
            transport,
            reactor,
            on_error=on_error,
            on_push=on_push,
            address=address,
            read_size=socket_info.read_size,
        )
        if address.db is not None:
            self.send(Command.of("SELECT", address.db), _expect_ok)
        return self

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.address} {self._state.name}>"

    @property
    def is_connected(self) -> bool:
        return self._state == _State.registered

    @property
    def watching(self) -> int:
        """The event mask currently registered with the reactor."""
        return self._watching

    @property
    def pending(self) -> int:
        """The number of commands still waiting for a reply."""
        return len(self._waiters)

    def send(
        self,
        command: Command,
        on_reply: ReplyHandlerT,
        on_error: ErrorHandlerT | None = None,
    ):
        """Queue a command. Never performs I/O.

        Args:
            command: The command to send.
            on_reply: Called with the reply once it is decoded. Error replies
                are delivered here as well.
            on_error: Called with a :py:class:`ConnectionLost` if the
                connection goes away before the reply arrives.

        Raises:
            :py:class:`~resplink.sansio.exceptions.PoisonedSessionError` if
            the connection was torn down.
        """
        if self._state != _State.registered:
            raise exceptions.PoisonedSessionError(
                constants.SESSION_POISONED_ERROR
                if self._exc is not None
                else constants.SESSION_CLOSED_ERROR
            ) from self._exc
        pack_command(command, buf=self._outbuf)
        self._waiters.append((command, on_reply, on_error))
        self._update_interest()

    def handle_events(self, mask: int):
        """The reactor callback."""
        if self._state != _State.registered:
            return
        try:
            if mask & EVENT_WRITE:
                self._write_to_transport()
            if mask & EVENT_READ and self._state == _State.registered:
                self._read_from_transport()
        except Exception as e:
            self._teardown(e)

    def disconnect(self):
        """Tear the connection down. Replies still in flight are discarded."""
        if self._state != _State.registered:
            return
        self._teardown(None)
        logger.debug("Disconnected from %s.", self.address)

    def _write_to_transport(self):
        outbuf = self._outbuf
        while outbuf:
            try:
                sent = self.transport.send(outbuf)
            except constants.NONBLOCKING_EXCEPTIONS:
                break
            except OSError as e:
                raise exceptions.ConnectionLost(
                    f"Error while writing to {self.address}: {e}"
                ) from e
            wanted = len(outbuf)
            del outbuf[:sent]
            if sent < wanted:
                # Socket buffer is full, wait for the next writable event.
                break
        self._update_interest()

    def _read_from_transport(self):
        reader = self._reader
        while True:
            try:
                data = self.transport.recv(self.read_size)
            except constants.NONBLOCKING_EXCEPTIONS:
                break
            except OSError as e:
                raise exceptions.ConnectionLost(
                    f"Error while reading from {self.address}: {e}"
                ) from e
            if not data:
                raise exceptions.ConnectionLost(
                    constants.SERVER_CLOSED_CONNECTION_ERROR
                )
            reader.feed(data)
            if len(data) < self.read_size:
                break

        reply = reader.gets()
        while reply is not False and self._state == _State.registered:
            self._deliver(reply)
            reply = reader.gets()

    def _deliver(self, reply: Reply):
        if not self._waiters:
            if self.on_push is not None:
                self.on_push(reply)
            else:
                logger.debug("Dropping unsolicited reply from %s: %r", self.address, reply)
            return
        _, on_reply, _ = self._waiters.popleft()
        on_reply(reply)

    def _update_interest(self):
        if self._state != _State.registered:
            return
        wanted = _interest(bool(self._outbuf))
        if wanted != self._watching:
            self.reactor.modify(self.transport, wanted, self.handle_events)
            self._watching = wanted

    def _teardown(self, exc: BaseException | None):
        if self._state == _State.torn_down:
            return
        registered = self._state == _State.registered
        self._state = _State.torn_down
        self._exc = exc
        transport, self.transport = self.transport, None
        if registered:
            self.reactor.unregister(transport)
            self._watching = 0
        try:
            transport.close()
        except OSError:
            pass
        self._outbuf.clear()
        self._reader.clear()

        waiters, self._waiters = self._waiters, collections.deque()
        for command, _, on_error in waiters:
            if on_error is None:
                continue
            lost = exceptions.ConnectionLost(
                f"Connection to {self.address} closed before the reply to "
                f"{command.name.decode(errors='replace')!r} arrived."
            )
            try:
                on_error(lost)
            except Exception:
                logger.exception("Error handler for %s failed.", command.name)

        if exc is None:
            return
        if self.on_error is not None:
            # Nothing raised here may reach the reactor.
            try:
                self.on_error(exc)
            except Exception:
                logger.exception("Error handler for %s failed.", self.address)
        else:
            logger.warning("Connection to %s torn down: %s", self.address, exc)


def _expect_ok(reply: Reply):
    reply.as_status()


@enum.unique
class _State(enum.IntEnum):
    unregistered = enum.auto()
    registered = enum.auto()
    torn_down = enum.auto()
