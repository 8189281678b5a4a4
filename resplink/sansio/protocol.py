from __future__ import annotations

import socket
import urllib.parse
from typing import Mapping

import attr

from resplink.sansio import constants, exceptions

__all__ = ("AddressInfo", "SocketInfo", "connection_error", "configure_socket")


@attr.s(kw_only=True, slots=True, auto_attribs=True)
class AddressInfo:
    host: str = "localhost"
    port: int = 6379
    db: int | None = None
    unix_socket_path: str | None = None

    @classmethod
    def from_url(cls, url: str) -> AddressInfo:
        """Parse a ``redis://host:port/db`` or ``unix:///path?db=n`` url.

        This performs URL validation, but does *not* make any connections.
        """
        parsed = urllib.parse.urlparse(url)
        query = urllib.parse.parse_qs(parsed.query)
        db = query.get("db", [None])[0]
        if parsed.scheme == "unix":
            if not parsed.path:
                raise ValueError("A unix url needs a socket path: 'unix:///path'")
            return cls(unix_socket_path=parsed.path, db=_db(db))

        if parsed.scheme != "redis" or not parsed.hostname:
            raise ValueError(
                "Only urls of scheme 'redis://host[:port][/db]' "
                "or 'unix:///path' are supported"
            )
        path = parsed.path.strip("/")
        return cls(
            host=parsed.hostname,
            port=parsed.port or 6379,
            db=_db(path or db),
        )

    @property
    def is_unix_socket(self) -> bool:
        return self.unix_socket_path is not None

    def __str__(self) -> str:
        if self.is_unix_socket:
            return self.unix_socket_path
        return f"{self.host}:{self.port}"


def _db(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid database number: {value!r}") from None


@attr.s(kw_only=True, slots=True, auto_attribs=True)
class SocketInfo:
    timeout: float | None = attr.field(factory=socket.getdefaulttimeout)
    connect_timeout: float | None = attr.field(factory=socket.getdefaulttimeout)
    keepalive: bool = False
    keepalive_options: Mapping[int, int | bytes] | None = None
    read_size: int = constants.DEFAULT_READ_SIZE


def connection_error(
    exception: BaseException, address: AddressInfo
) -> exceptions.ConnectError:
    # args for socket.error can either be (errno, "message")
    # or just "message"
    if len(exception.args) == 1:
        message = (
            f"{exception.__class__.__name__} while connecting to "
            f"{address}. {exception.args[0]}."
        )
    elif len(exception.args) > 1:
        message = (
            f"Error {exception.args[0]} connecting to "
            f"{address}. {exception.args[1]}."
        )
    else:
        message = f"{exception.__class__.__name__} while connecting to {address}."

    return exceptions.ConnectError(message)


def configure_socket(
    sock: socket.socket, socket_info: SocketInfo, *, settimeout: bool = True
):
    if settimeout:
        sock.settimeout(socket_info.timeout)
    if sock.family == socket.AF_UNIX:
        return

    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    # TCP_KEEPALIVE
    if socket_info.keepalive:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            for k, v in (socket_info.keepalive_options or {}).items():
                sock.setsockopt(socket.SOL_TCP, k, v)
        except (OSError, TypeError):
            # `keepalive_options` might contain invalid options
            # causing an error. Do not leave the socket open.
            sock.close()
            raise
