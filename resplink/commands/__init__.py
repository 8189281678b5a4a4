from __future__ import annotations

from resplink.commands.hash import HashCommands
from resplink.commands.key import KeyCommands
from resplink.commands.management import ManagementCommands
from resplink.commands.set import SetCommands
from resplink.commands.string import StringCommands


class DataAccessCommands(
    KeyCommands,
    HashCommands,
    SetCommands,
    StringCommands,
):
    """
    A class containing all of the implemented data access redis commands.
    This class is to be used as a mixin.
    """


class CoreCommands(
    DataAccessCommands,
    ManagementCommands,
):
    """
    A class containing all of the implemented redis commands. This class is
    to be used as a mixin.
    """
