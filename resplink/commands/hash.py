from __future__ import annotations

from typing import Mapping, Optional

from resplink.commands import callbacks
from resplink.commands.base import CommandsProtocol
from resplink.sansio.exceptions import DataError


class HashCommands(CommandsProtocol):
    """
    Redis commands for Hash data type.
    see: https://redis.io/topics/data-types-intro#redis-hashes
    """

    def hdel(self, name, *keys) -> int:
        """
        Delete ``keys`` from hash ``name``

        For more information check https://redis.io/commands/hdel
        """
        return self.execute_command("HDEL", name, *keys, callback=callbacks.integer)

    def hexists(self, name, key) -> bool:
        """
        Returns a boolean indicating if ``key`` exists within hash ``name``

        For more information check https://redis.io/commands/hexists
        """
        return self.execute_command("HEXISTS", name, key, callback=callbacks.boolean)

    def hget(self, name, key) -> Optional[bytes]:
        """
        Return the value of ``key`` within the hash ``name``

        For more information check https://redis.io/commands/hget
        """
        return self.execute_command(
            "HGET", name, key, callback=callbacks.optional_string
        )

    def hgetall(self, name) -> dict:
        """
        Return a Python dict of the hash's name/value pairs

        For more information check https://redis.io/commands/hgetall
        """
        return self.execute_command("HGETALL", name, callback=callbacks.pairs_to_dict)

    def hkeys(self, name) -> list:
        """
        Return the list of keys within hash ``name``

        For more information check https://redis.io/commands/hkeys
        """
        return self.execute_command("HKEYS", name, callback=callbacks.string_list)

    def hlen(self, name) -> int:
        """
        Return the number of elements in hash ``name``

        For more information check https://redis.io/commands/hlen
        """
        return self.execute_command("HLEN", name, callback=callbacks.integer)

    def hset(
        self,
        name,
        key=None,
        value=None,
        mapping: Optional[Mapping] = None,
    ) -> int:
        """
        Set ``key`` to ``value`` within hash ``name``,
        ``mapping`` accepts a dict of key/value pairs that will be
        added to hash ``name``.
        Returns the number of fields that were added.

        For more information check https://redis.io/commands/hset
        """
        if key is None and not mapping:
            raise DataError("'hset' with no key value pairs")
        items = []
        if key is not None:
            items.extend((key, value))
        if mapping:
            for pair in mapping.items():
                items.extend(pair)

        return self.execute_command("HSET", name, *items, callback=callbacks.integer)
