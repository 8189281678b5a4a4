from __future__ import annotations

from resplink.commands import callbacks
from resplink.commands.base import CommandsProtocol


class SetCommands(CommandsProtocol):
    """
    Redis commands for Set data type.
    see: https://redis.io/topics/data-types-intro#redis-sets
    """

    def sadd(self, name, *values) -> int:
        """
        Add ``value(s)`` to set ``name``

        For more information check https://redis.io/commands/sadd
        """
        return self.execute_command("SADD", name, *values, callback=callbacks.integer)

    def scard(self, name) -> int:
        """
        Return the number of elements in set ``name``

        For more information check https://redis.io/commands/scard
        """
        return self.execute_command("SCARD", name, callback=callbacks.integer)

    def sismember(self, name, value) -> bool:
        """
        Return a boolean indicating if ``value`` is a member of set ``name``

        For more information check https://redis.io/commands/sismember
        """
        return self.execute_command(
            "SISMEMBER", name, value, callback=callbacks.boolean
        )

    def smembers(self, name) -> set:
        """
        Return all members of the set ``name``

        For more information check https://redis.io/commands/smembers
        """
        return self.execute_command("SMEMBERS", name, callback=callbacks.string_set)

    def srem(self, name, *values) -> int:
        """
        Remove ``values`` from set ``name``

        For more information check https://redis.io/commands/srem
        """
        return self.execute_command("SREM", name, *values, callback=callbacks.integer)
