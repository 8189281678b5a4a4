"""Reply callbacks used by the command wrappers.

Each callback narrows a :py:class:`~resplink.sansio.reply.Reply` with one of
its typed projections. They all take the client's ``encoding``: when set,
bulk strings come back as ``str`` instead of ``bytes``.
"""
from __future__ import annotations

from typing import Any

from resplink.sansio.reply import Reply


def status(reply: Reply, encoding: str | None = None) -> str:
    return reply.as_status()


def ok(reply: Reply, encoding: str | None = None) -> bool:
    return reply.as_status() == "OK"


def integer(reply: Reply, encoding: str | None = None) -> int:
    return reply.as_integer()


def boolean(reply: Reply, encoding: str | None = None) -> bool:
    return bool(reply.as_integer())


def string(reply: Reply, encoding: str | None = None) -> Any:
    return reply.as_string(encoding)


def optional_string(reply: Reply, encoding: str | None = None) -> Any:
    if reply.is_nil():
        return None
    return reply.as_string(encoding)


def string_list(reply: Reply, encoding: str | None = None) -> list:
    return reply.as_string_array(encoding)


def optional_string_list(reply: Reply, encoding: str | None = None) -> list:
    return [optional_string(e, encoding) for e in reply.as_array()]


def string_set(reply: Reply, encoding: str | None = None) -> set:
    return set(reply.as_string_array(encoding))


def pairs_to_dict(reply: Reply, encoding: str | None = None) -> dict:
    """Take a flat array of alternating keys and values and dump it to a dictionary."""
    it = iter(reply.as_string_array(encoding))
    return dict(zip(it, it))


def set_result(reply: Reply, encoding: str | None = None) -> bool:
    # SET with NX/XX answers nil when the condition was not met.
    if reply.is_nil():
        return False
    return reply.as_status() == "OK"


def ping(reply: Reply, encoding: str | None = None) -> bool:
    return reply.as_status().upper() == "PONG"
