from __future__ import annotations

import enum
import logging
import socket

from resplink.io.transport import SocketTransport, Transport
from resplink.sansio import constants, exceptions, protocol
from resplink.sansio.reader import ReplyReader
from resplink.sansio.reply import Reply
from resplink.sansio.types import EncodableT
from resplink.sansio.writer import Command, pack_command

__all__ = ("Connection", "Pipeline")

logger = logging.getLogger(__name__)


class Connection:
    """A blocking RESP connection over a single transport.

    The connection owns its transport: one command is written, and the calling
    thread blocks until exactly one reply has been decoded. Error replies from
    the server are ordinary :py:class:`~resplink.sansio.reply.Reply` values.

    Any transport failure or malformed reply poisons the connection: the
    transport is released and every later call raises
    :py:class:`~resplink.sansio.exceptions.PoisonedSessionError` without
    touching the transport again. There is no reconnect.
    """

    __slots__ = (
        "transport",
        "address",
        "socket_info",
        "_reader",
        "_state",
        "_exc",
        "__weakref__",
    )

    def __init__(
        self,
        transport: Transport,
        *,
        address: protocol.AddressInfo | None = None,
        socket_info: protocol.SocketInfo | None = None,
    ):
        self.address = address or protocol.AddressInfo()
        self.socket_info = socket_info or protocol.SocketInfo()
        self.transport: Transport | None = transport
        self._reader = ReplyReader()
        self._exc: BaseException | None = None
        self._state = _State.not_connected
        err = transport.error()
        if err is not None:
            transport.close()
            self.transport = None
            raise protocol.connection_error(err, self.address) from err
        self._state = _State.connected

    @classmethod
    def open(
        cls,
        address: protocol.AddressInfo | str | None = None,
        socket_info: protocol.SocketInfo | None = None,
    ) -> Connection:
        """Connect to a server and select the configured database.

        Args:
            address: An :py:class:`AddressInfo` or a ``redis://`` url.
            socket_info: Socket options, including the transport timeouts.

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
            transport = SocketTransport.connect(address, socket_info)
        except OSError as e:
            raise protocol.connection_error(e, address) from e

        self = cls(transport, address=address, socket_info=socket_info)
        logger.debug("Connected to %s.", address)
        if address.db is not None:
            try:
                self.execute("SELECT", address.db).as_status()
            except exceptions.RedisError as e:
                self.close()
                raise protocol.connection_error(e, address) from e
        return self

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        if getattr(self, "_state", None) == _State.connected:
            self._release()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.address} {self._state.name}>"

    @property
    def is_connected(self) -> bool:
        return self._state == _State.connected

    def send(self, command: Command) -> Reply:
        """Write one command and block until its reply is decoded.

        Raises:
            :py:class:`~resplink.sansio.exceptions.ConnectionLost`
            :py:class:`~resplink.sansio.exceptions.InvalidResponse`
        """
        self.append(command)
        return self.drain_one()

    def execute(self, command: str | bytes, *args: EncodableT) -> Reply:
        """Build a :py:class:`Command` from ``command`` and ``args`` and send it."""
        return self.send(Command.of(command, *args))

    def append(self, command: Command):
        """Write one command without reading its reply.

        Each call must be matched by one :py:meth:`drain_one`.
        """
        transport = self._check_usable()
        payload = pack_command(command)
        try:
            transport.sendall(payload)
        except socket.timeout as e:
            raise self._fail(
                exceptions.RedisTimeoutError(f"Timeout writing to {self.address}.")
            ) from e
        except OSError as e:
            raise self._fail(
                exceptions.ConnectionLost(
                    f"Error while writing to {self.address}: {e}"
                )
            ) from e
        except BaseException as e:
            # A partial write leaves the stream unusable.
            self._fail(e)
            raise

    def drain_one(self) -> Reply:
        """Block until the next reply is fully decoded."""
        self._check_usable()
        reader = self._reader
        try:
            reply = reader.gets()
            while reply is False:
                self._read_from_transport()
                reply = reader.gets()
        except exceptions.InvalidResponse as e:
            raise self._fail(e)
        except exceptions.ConnectionLost:
            raise
        except BaseException as e:
            # Interrupted mid-reply, the read cursor can't be trusted anymore.
            self._fail(e)
            raise
        return reply

    def pipeline(self) -> Pipeline:
        return Pipeline(self)

    def close(self):
        """Release the transport. Later calls raise ``PoisonedSessionError``."""
        if self._state != _State.connected:
            return
        self._state = _State.closed
        self._release()
        logger.debug("Closed connection to %s.", self.address)

    def _read_from_transport(self):
        try:
            data = self.transport.recv(self.socket_info.read_size)
        except socket.timeout as e:
            raise self._fail(
                exceptions.RedisTimeoutError(f"Timeout reading from {self.address}.")
            ) from e
        except OSError as e:
            raise self._fail(
                exceptions.ConnectionLost(
                    f"Error while reading from {self.address}: {e}"
                )
            ) from e
        if not data:
            raise self._fail(
                exceptions.ConnectionLost(constants.SERVER_CLOSED_CONNECTION_ERROR)
            )
        self._reader.feed(data)

    def _check_usable(self) -> Transport:
        if self._state == _State.connected:
            return self.transport
        if self._state == _State.error:
            raise exceptions.PoisonedSessionError(
                constants.SESSION_POISONED_ERROR
            ) from self._exc
        raise exceptions.PoisonedSessionError(constants.SESSION_CLOSED_ERROR)

    def _fail(self, exc: BaseException) -> BaseException:
        self._exc = exc
        self._state = _State.error
        logger.warning("Connection to %s is unusable: %s", self.address, exc)
        self._release()
        return exc

    def _release(self):
        transport, self.transport = self.transport, None
        self._reader.clear()
        if transport is None:
            return
        try:
            transport.close()
        except OSError:
            pass


class Pipeline:
    """Batches commands on one :py:class:`Connection`.

    Commands are written as they are enqueued; replies are only read by
    :py:meth:`drain`, in the order the commands were enqueued.

    The pipeline borrows its connection. If it is closed, leaves a ``with``
    block, or is garbage collected while replies are still outstanding, those
    replies are drained and discarded so the connection's next reply belongs
    to the next command. Errors raised during that implicit drain are logged
    at debug level and never propagated.
    """

    __slots__ = ("connection", "outstanding")

    def __init__(self, connection: Connection):
        self.connection = connection
        self.outstanding = 0

    def __enter__(self) -> Pipeline:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        if getattr(self, "outstanding", 0):
            self.close()

    def __len__(self) -> int:
        return self.outstanding

    def enqueue(self, command: Command) -> Pipeline:
        """Write a command. Never reads."""
        self.connection.append(command)
        self.outstanding += 1
        return self

    def execute(self, command: str | bytes, *args: EncodableT) -> Pipeline:
        """Build a :py:class:`Command` from ``command`` and ``args`` and enqueue it."""
        return self.enqueue(Command.of(command, *args))

    def drain(self) -> list[Reply | exceptions.RedisError]:
        """Read every outstanding reply, in submission order.

        Returns:
            One entry per enqueued command: the reply, or the error raised
            while reading it. Once the connection fails, every remaining slot
            holds a :py:class:`~resplink.sansio.exceptions.ConnectionLost`.
        """
        count, self.outstanding = self.outstanding, 0
        replies: list[Reply | exceptions.RedisError] = []
        append = replies.append
        drain_one = self.connection.drain_one
        for _ in range(count):
            try:
                append(drain_one())
            except exceptions.RedisError as e:
                append(e)
        return replies

    def close(self):
        """Drain and discard any outstanding replies, swallowing all errors."""
        if not self.outstanding:
            return
        try:
            failed = [r for r in self.drain() if isinstance(r, BaseException)]
        except Exception:
            logger.debug("Discarded error while flushing pipeline.", exc_info=True)
            return
        if failed:
            logger.debug(
                "Discarded %d failed replies while flushing pipeline: %r",
                len(failed),
                failed[0],
            )


@enum.unique
class _State(enum.IntEnum):
    not_connected = enum.auto()
    connected = enum.auto()
    error = enum.auto()
    closed = enum.auto()
