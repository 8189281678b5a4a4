from __future__ import annotations

import datetime
from typing import Optional, Union

from resplink.commands import callbacks
from resplink.commands.base import CommandsProtocol, iterkeysargs
from resplink.sansio.writer import Milliseconds, Seconds, UnixTime, UnixTimeMs

_DurationT = Union[int, datetime.timedelta]
_WhenT = Union[int, datetime.datetime]


class KeyCommands(CommandsProtocol):
    """
    Redis basic key-based commands
    """

    def delete(self, *names) -> int:
        """
        Delete one or more keys specified by ``names``

        For more information check https://redis.io/commands/del
        """
        return self.execute_command("DEL", *names, callback=callbacks.integer)

    def exists(self, *names) -> int:
        """
        Returns the number of ``names`` that exist

        For more information check https://redis.io/commands/exists
        """
        return self.execute_command("EXISTS", *names, callback=callbacks.integer)

    def expire(self, name, time: _DurationT) -> bool:
        """
        Set an expire flag on key ``name`` for ``time`` seconds. ``time``
        can be represented by an integer or a Python timedelta object.

        For more information check https://redis.io/commands/expire
        """
        if isinstance(time, datetime.timedelta):
            time = Seconds(time)
        return self.execute_command("EXPIRE", name, time, callback=callbacks.boolean)

    def pexpire(self, name, time: _DurationT) -> bool:
        """
        Set an expire flag on key ``name`` for ``time`` milliseconds.
        ``time`` can be represented by an integer or a Python timedelta
        object.

        For more information check https://redis.io/commands/pexpire
        """
        if isinstance(time, datetime.timedelta):
            time = Milliseconds(time)
        return self.execute_command("PEXPIRE", name, time, callback=callbacks.boolean)

    def expireat(self, name, when: _WhenT) -> bool:
        """
        Set an expire flag on key ``name``. ``when`` can be represented
        as an integer indicating unix time or a Python datetime object.

        For more information check https://redis.io/commands/expireat
        """
        if isinstance(when, datetime.datetime):
            when = UnixTime(when)
        return self.execute_command("EXPIREAT", name, when, callback=callbacks.boolean)

    def pexpireat(self, name, when: _WhenT) -> bool:
        """
        Set an expire flag on key ``name``. ``when`` can be represented
        as an integer representing unix time in milliseconds (unix time * 1000)
        or a Python datetime object.

        For more information check https://redis.io/commands/pexpireat
        """
        if isinstance(when, datetime.datetime):
            when = UnixTimeMs(when)
        return self.execute_command(
            "PEXPIREAT", name, when, callback=callbacks.boolean
        )

    def ttl(self, name) -> int:
        """
        Returns the number of seconds until the key ``name`` will expire

        For more information check https://redis.io/commands/ttl
        """
        return self.execute_command("TTL", name, callback=callbacks.integer)

    def pttl(self, name) -> int:
        """
        Returns the number of milliseconds until the key ``name`` will expire

        For more information check https://redis.io/commands/pttl
        """
        return self.execute_command("PTTL", name, callback=callbacks.integer)

    def persist(self, name) -> bool:
        """
        Removes an expiration on ``name``

        For more information check https://redis.io/commands/persist
        """
        return self.execute_command("PERSIST", name, callback=callbacks.boolean)

    def keys(self, pattern="*") -> list:
        """
        Returns a list of keys matching ``pattern``

        For more information check https://redis.io/commands/keys
        """
        return self.execute_command("KEYS", pattern, callback=callbacks.string_list)

    def type(self, name) -> str:
        """
        Returns the type of key ``name``

        For more information check https://redis.io/commands/type
        """
        return self.execute_command("TYPE", name, callback=callbacks.status)

    def rename(self, src, dst) -> bool:
        """
        Rename key ``src`` to ``dst``

        For more information check https://redis.io/commands/rename
        """
        return self.execute_command("RENAME", src, dst, callback=callbacks.ok)

    def renamenx(self, src, dst) -> bool:
        """
        Rename key ``src`` to ``dst`` if ``dst`` doesn't already exist

        For more information check https://redis.io/commands/renamenx
        """
        return self.execute_command("RENAMENX", src, dst, callback=callbacks.boolean)

    def randomkey(self) -> Optional[bytes]:
        """
        Returns the name of a random key

        For more information check https://redis.io/commands/randomkey
        """
        return self.execute_command("RANDOMKEY", callback=callbacks.optional_string)

    def dump(self, name) -> Optional[bytes]:
        """
        Return a serialized version of the value stored at the specified key.
        If key does not exist a nil bulk reply is returned.

        For more information check https://redis.io/commands/dump
        """
        return self.execute_command("DUMP", name, callback=callbacks.optional_string)

    def restore(self, name, ttl: _DurationT, value: bytes, replace: bool = False) -> bool:
        """
        Create a key using the provided serialized value, previously obtained
        using DUMP. ``ttl`` is in milliseconds, 0 for no expiry.

        For more information check https://redis.io/commands/restore
        """
        if isinstance(ttl, datetime.timedelta):
            ttl = Milliseconds(ttl)
        params = [name, ttl, value]
        if replace:
            params.append("REPLACE")
        return self.execute_command("RESTORE", *params, callback=callbacks.ok)

    def unlink(self, *names) -> int:
        """
        Unlink one or more keys specified by ``names``

        For more information check https://redis.io/commands/unlink
        """
        return self.execute_command(
            "UNLINK", *iterkeysargs(names), callback=callbacks.integer
        )
