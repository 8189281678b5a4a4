from __future__ import annotations

from typing import Optional

from resplink.commands import callbacks
from resplink.commands.base import CommandsProtocol


class ManagementCommands(CommandsProtocol):
    """
    Redis connection and server management commands
    """

    def ping(self) -> bool:
        """
        Ping the Redis server

        For more information check https://redis.io/commands/ping
        """
        return self.execute_command("PING", callback=callbacks.ping)

    def echo(self, value) -> bytes:
        """
        Echo the string back from the server

        For more information check https://redis.io/commands/echo
        """
        return self.execute_command("ECHO", value, callback=callbacks.string)

    def select(self, index: int) -> bool:
        """Select the Redis logical database at index.

        See: https://redis.io/commands/select
        """
        return self.execute_command("SELECT", index, callback=callbacks.ok)

    def client_getname(self) -> Optional[bytes]:
        """
        Returns the current connection name

        For more information check https://redis.io/commands/client-getname
        """
        return self.execute_command(
            "CLIENT", "GETNAME", callback=callbacks.optional_string
        )

    def client_setname(self, name: str) -> bool:
        """
        Sets the current connection name

        For more information check https://redis.io/commands/client-setname
        """
        return self.execute_command("CLIENT", "SETNAME", name, callback=callbacks.ok)

    def dbsize(self) -> int:
        """
        Returns the number of keys in the current database

        For more information check https://redis.io/commands/dbsize
        """
        return self.execute_command("DBSIZE", callback=callbacks.integer)

    def flushdb(self, asynchronous: bool = False) -> bool:
        """
        Delete all keys in the current database.

        ``asynchronous`` indicates whether the operation is
        executed asynchronously by the server.

        For more information check https://redis.io/commands/flushdb
        """
        args = ["ASYNC"] if asynchronous else []
        return self.execute_command("FLUSHDB", *args, callback=callbacks.ok)

    def info(self, section: Optional[str] = None) -> bytes:
        """
        Returns the raw INFO text for the server, optionally limited to
        one ``section``.

        For more information check https://redis.io/commands/info
        """
        args = [section] if section else []
        return self.execute_command("INFO", *args, callback=callbacks.string)
