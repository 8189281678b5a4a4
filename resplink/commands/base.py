from __future__ import annotations

from typing import Iterable, Protocol

from resplink.sansio.types import EncodableT, EncodedT


class CommandsProtocol(Protocol):
    def execute_command(self, command: str | bytes, *args, callback=None, **kwargs):
        ...


def iterkeysargs(
    keys: EncodedT | str | Iterable[EncodedT | str], args: Iterable[EncodableT] = ()
) -> Iterable[EncodableT]:
    if isinstance(keys, (str, bytes, memoryview, bytearray)):
        yield keys
    else:
        yield from iter(keys)
    yield from iter(args)
