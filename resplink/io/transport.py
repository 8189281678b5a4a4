from __future__ import annotations

import os
import socket
from typing import Protocol

from resplink.sansio import protocol

__all__ = ("Transport", "SocketTransport")


class Transport(Protocol):
    """The byte-stream a connection reads replies from and writes commands to.

    Blocking connections use :py:meth:`sendall` and :py:meth:`recv`; evented
    connections use :py:meth:`send` and :py:meth:`recv` on a non-blocking
    handle, which raise :py:class:`BlockingIOError` when not ready.
    """

    def fileno(self) -> int:
        ...

    def sendall(self, data: bytes) -> None:
        ...

    def send(self, data: bytes) -> int:
        ...

    def recv(self, size: int) -> bytes:
        ...

    def error(self) -> OSError | None:
        """A pending transport error, if the handle has one."""
        ...

    def close(self) -> None:
        ...


class SocketTransport:
    """A :py:class:`Transport` over a connected :py:class:`socket.socket`."""

    __slots__ = ("sock",)

    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def connect(
        cls,
        address: protocol.AddressInfo,
        socket_info: protocol.SocketInfo | None = None,
        *,
        blocking: bool = True,
    ) -> SocketTransport:
        """Open a socket to ``address``.

        Raises:
            :py:class:`OSError` if the connection cannot be established.
        """
        socket_info = socket_info or protocol.SocketInfo()
        timeout = socket_info.connect_timeout
        if address.is_unix_socket:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            try:
                sock.connect(address.unix_socket_path)
            except BaseException:
                sock.close()
                raise
        else:
            sock = socket.create_connection(
                address=(address.host, address.port),
                timeout=timeout,
            )
        protocol.configure_socket(sock, socket_info)
        if not blocking:
            sock.setblocking(False)
        return cls(sock)

    def fileno(self) -> int:
        return self.sock.fileno()

    def sendall(self, data: bytes) -> None:
        self.sock.sendall(data)

    def send(self, data: bytes) -> int:
        return self.sock.send(data)

    def recv(self, size: int) -> bytes:
        return self.sock.recv(size)

    def error(self) -> OSError | None:
        if self.sock.fileno() == -1:
            return OSError("Socket is closed.")
        code = self.sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if code:
            return OSError(code, os.strerror(code))
        return None

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()

