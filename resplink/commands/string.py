from __future__ import annotations

import datetime
from typing import Optional, Union

from resplink.commands import callbacks
from resplink.commands.base import CommandsProtocol, iterkeysargs
from resplink.sansio.exceptions import DataError
from resplink.sansio.writer import Milliseconds, Seconds


class StringCommands(CommandsProtocol):
    """
    Redis commands for String data type.
    see: https://redis.io/topics/data-types-intro#redis-strings
    """

    def get(self, name) -> Optional[bytes]:
        """
        Return the value at key ``name``, or None if the key doesn't exist

        For more information check https://redis.io/commands/get
        """
        return self.execute_command("GET", name, callback=callbacks.optional_string)

    def set(
        self,
        name,
        value,
        ex: Union[int, datetime.timedelta, None] = None,
        px: Union[int, datetime.timedelta, None] = None,
        nx: bool = False,
        xx: bool = False,
    ) -> bool:
        """
        Set the value at key ``name`` to ``value``

        ``ex`` sets an expire flag on key ``name`` for ``ex`` seconds.

        ``px`` sets an expire flag on key ``name`` for ``px`` milliseconds.

        ``nx`` if set to True, set the value at key ``name`` to ``value`` only
            if it does not exist.

        ``xx`` if set to True, set the value at key ``name`` to ``value`` only
            if it already exists.

        For more information check https://redis.io/commands/set
        """
        if nx and xx:
            raise DataError("``nx`` and ``xx`` are mutually exclusive.")
        if ex is not None and px is not None:
            raise DataError("``ex`` and ``px`` are mutually exclusive.")
        params = [name, value]
        if ex is not None:
            params.extend(
                ("EX", Seconds(ex) if isinstance(ex, datetime.timedelta) else ex)
            )
        if px is not None:
            params.extend(
                ("PX", Milliseconds(px) if isinstance(px, datetime.timedelta) else px)
            )
        if nx:
            params.append("NX")
        if xx:
            params.append("XX")
        return self.execute_command("SET", *params, callback=callbacks.set_result)

    def mget(self, keys, *args) -> list:
        """
        Returns a list of values ordered identically to ``keys``

        For more information check https://redis.io/commands/mget
        """
        return self.execute_command(
            "MGET", *iterkeysargs(keys, args), callback=callbacks.optional_string_list
        )

    def incr(self, name) -> int:
        """
        Increments the value of ``name`` by 1.

        For more information check https://redis.io/commands/incr
        """
        return self.execute_command("INCR", name, callback=callbacks.integer)

    def incrby(self, name, amount: int = 1) -> int:
        """
        Increments the value of ``name`` by ``amount``.  If no key exists,
        the value will be initialized as ``amount``

        For more information check https://redis.io/commands/incrby
        """
        return self.execute_command("INCRBY", name, amount, callback=callbacks.integer)

    def decr(self, name) -> int:
        """
        Decrements the value of ``name`` by 1.

        For more information check https://redis.io/commands/decr
        """
        return self.execute_command("DECR", name, callback=callbacks.integer)

    def append(self, name, value) -> int:
        """
        Appends the string ``value`` to the value at ``name``. If ``name``
        doesn't already exist, create it with a value of ``value``.
        Returns the new length of the value at ``name``.

        For more information check https://redis.io/commands/append
        """
        return self.execute_command("APPEND", name, value, callback=callbacks.integer)

    def strlen(self, name) -> int:
        """
        Return the number of bytes stored in the value of ``name``

        For more information check https://redis.io/commands/strlen
        """
        return self.execute_command("STRLEN", name, callback=callbacks.integer)
