from __future__ import annotations

import asyncio

import async_timeout

from resplink.io.evented import AsyncConnection
from resplink.io.reactor import EVENT_READ, EVENT_WRITE
from resplink.sansio import exceptions
from resplink.sansio.reply import Reply
from resplink.sansio.types import ReadyCallbackT
from resplink.sansio.writer import Command

__all__ = ("AsyncIOReactor", "execute")


def _fileno(fileobj) -> int:
    return fileobj if isinstance(fileobj, int) else fileobj.fileno()


class AsyncIOReactor:
    """Drive :py:class:`~resplink.io.evented.AsyncConnection` from an asyncio loop.

    Maps the :py:class:`~resplink.io.reactor.Reactor` interface onto
    :py:meth:`asyncio.AbstractEventLoop.add_reader` and friends. Requires a
    loop that supports them (the default selector loop on POSIX).
    """

    __slots__ = ("loop", "_registered")

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop or asyncio.get_running_loop()
        self._registered: dict[int, int] = {}

    def register(self, fileobj, events: int, data: ReadyCallbackT):
        fd = _fileno(fileobj)
        if fd in self._registered:
            raise KeyError(f"{fileobj!r} (FD {fd}) is already registered")
        self._registered[fd] = events
        self._apply(fd, 0, events, data)

    def modify(self, fileobj, events: int, data: ReadyCallbackT):
        fd = _fileno(fileobj)
        if fd not in self._registered:
            raise KeyError(f"{fileobj!r} is not registered")
        old, self._registered[fd] = self._registered[fd], events
        self._apply(fd, old, events, data)

    def unregister(self, fileobj):
        fd = _fileno(fileobj)
        old = self._registered.pop(fd)
        self._apply(fd, old, 0, None)

    def _apply(self, fd: int, old: int, new: int, data: ReadyCallbackT | None):
        loop = self.loop
        if new & EVENT_READ:
            loop.add_reader(fd, data, EVENT_READ)
        elif old & EVENT_READ:
            loop.remove_reader(fd)
        if new & EVENT_WRITE:
            loop.add_writer(fd, data, EVENT_WRITE)
        elif old & EVENT_WRITE:
            loop.remove_writer(fd)


async def execute(
    connection: AsyncConnection, command: Command, *, timeout: float | None = None
) -> Reply:
    """Send ``command`` and wait for its reply.

    The connection must be registered with an :py:class:`AsyncIOReactor` on
    the running loop. On timeout the reply is still consumed when it
    arrives, so later replies stay in order.

    Raises:
        :py:class:`~resplink.sansio.exceptions.RedisTimeoutError`
        :py:class:`~resplink.sansio.exceptions.ConnectionLost`
    """
    fut = asyncio.get_running_loop().create_future()

    def on_reply(reply: Reply):
        if not fut.done():
            fut.set_result(reply)

    def on_error(exc: BaseException):
        if not fut.done():
            fut.set_exception(exc)

    connection.send(command, on_reply, on_error)
    try:
        async with async_timeout.timeout(timeout):
            return await fut
    except asyncio.TimeoutError:
        raise exceptions.RedisTimeoutError(
            f"Timed out waiting for the reply to {str(command)!r}."
        ) from None
