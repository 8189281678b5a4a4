from __future__ import annotations

from typing import Any, Callable

from resplink.commands import CoreCommands
from resplink.io import sio
from resplink.sansio import exceptions, protocol
from resplink.sansio.reply import Reply
from resplink.sansio.writer import Command

__all__ = ("Redis", "RedisPipeline")

CallbackT = Callable[..., Any]


class Redis(CoreCommands):
    """A command client over one blocking :py:class:`~resplink.io.sio.Connection`.

    Command methods return the value produced by their reply callback.
    Error replies are raised as :py:class:`~resplink.sansio.exceptions.RemoteError`
    when the callback projects them. :py:meth:`execute_command` without a
    callback returns the raw :py:class:`~resplink.sansio.reply.Reply`.

    Examples:
        >>> with Redis.from_url("redis://localhost:6379/0", encoding="utf-8") as r:
        ...     r.set("foo", "bar")
        ...     r.get("foo")
        True
        'bar'
    """

    def __init__(self, connection: sio.Connection, *, encoding: str | None = None):
        self.connection = connection
        self.encoding = encoding

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        encoding: str | None = None,
        socket_info: protocol.SocketInfo | None = None,
    ) -> Redis:
        connection = sio.Connection.open(
            protocol.AddressInfo.from_url(url), socket_info
        )
        return cls(connection, encoding=encoding)

    def __enter__(self) -> Redis:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.connection!r}>"

    def execute_command(
        self,
        command: str | bytes,
        *args,
        callback: CallbackT | None = None,
        **kwargs,
    ):
        reply = self.connection.send(Command.of(command, *args))
        if callback is None:
            return reply
        return callback(reply, encoding=self.encoding, **kwargs)

    def pipeline(self) -> RedisPipeline:
        return RedisPipeline(self.connection.pipeline(), encoding=self.encoding)

    def close(self):
        self.connection.close()


class RedisPipeline(CoreCommands):
    """Queue command methods on a :py:class:`~resplink.io.sio.Pipeline`.

    Each command method writes immediately and returns the pipeline, so
    calls can be chained. :py:meth:`execute` reads every reply in order and
    applies the callbacks.

    Examples:
        >>> with Redis.from_url("redis://localhost") as r:
        ...     with r.pipeline() as p:
        ...         p.set("foo", 1).incr("foo").execute()
        [True, 2]
    """

    def __init__(self, pipeline: sio.Pipeline, *, encoding: str | None = None):
        self.pipeline = pipeline
        self.encoding = encoding
        self._callbacks: list[tuple[CallbackT | None, dict]] = []

    def __enter__(self) -> RedisPipeline:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __len__(self) -> int:
        return len(self._callbacks)

    def execute_command(
        self,
        command: str | bytes,
        *args,
        callback: CallbackT | None = None,
        **kwargs,
    ) -> RedisPipeline:
        self.pipeline.execute(command, *args)
        self._callbacks.append((callback, kwargs))
        return self

    def execute(self, raise_on_error: bool = False) -> list:
        """Read every queued reply and apply its callback.

        Args:
            raise_on_error: Raise the first failure instead of returning it
                in its slot.

        Returns:
            One entry per queued command: the callback result, or the
            exception raised while reading or projecting that reply.
        """
        callbacks, self._callbacks = self._callbacks, []
        results = []
        for (callback, kwargs), reply in zip(callbacks, self.pipeline.drain()):
            if not isinstance(reply, Reply):
                results.append(reply)
                continue
            if callback is None:
                results.append(reply)
                continue
            try:
                results.append(callback(reply, encoding=self.encoding, **kwargs))
            except (exceptions.RemoteError, exceptions.TypeMismatch) as e:
                results.append(e)
        if raise_on_error:
            for r in results:
                if isinstance(r, exceptions.RedisError):
                    raise r
        return results

    def close(self):
        self._callbacks.clear()
        self.pipeline.close()
