from __future__ import annotations

import re
from typing import Generic

from resplink.sansio import constants
from resplink.sansio.exceptions import InvalidResponse
from resplink.sansio.reply import Reply, ReplyArena, ReplyType
from resplink.sansio.types import NotEnoughDataT

__all__ = ("ReplyReader", "decode")

_PLUS, _MINUS, _COLON, _DOLLAR, _STAR = b"+-:$*"
_SIMPLE = {_PLUS: ReplyType.STATUS, _MINUS: ReplyType.ERROR}
_INTEGER = re.compile(rb"-?[0-9]+")


class ReplyReader(Generic[NotEnoughDataT]):
    """An incremental RESP2 parser following the :py:class:`hiredis.Reader` interface.

    Bytes are pushed in with :py:meth:`feed` as they arrive; :py:meth:`gets`
    returns the next complete :py:class:`~resplink.sansio.reply.Reply`, or the
    ``notEnoughData`` sentinel if the buffered bytes do not hold one yet.
    The elements of a partial reply are parsed once: the next call resumes
    from the first element that was still incomplete.

    Error replies are returned as replies (see
    :py:meth:`~resplink.sansio.reply.Reply.as_error`). Malformed input raises
    :py:class:`~resplink.sansio.exceptions.InvalidResponse`.
    """

    __slots__ = (
        "_buf",
        "_needed",
        "_pos",
        "_types",
        "_starts",
        "_sizes",
        "_children",
        "_stack",
        "notEnoughData",
    )

    def __init__(self, notEnoughData: NotEnoughDataT = False):
        self._buf = bytearray()
        self.notEnoughData = notEnoughData
        self._reset()

    def feed(self, data, o: int = 0, l: int = -1):  # noqa: E741
        """Feed data to parser."""
        if l == -1:  # noqa: E741
            l = len(data) - o  # noqa: E741
        if o < 0 or l < 0:
            raise ValueError("negative input")
        if o + l > len(data):
            raise ValueError("input is larger than buffer size")
        self._buf.extend(data[o : o + l])

    def gets(self) -> Reply | NotEnoughDataT:
        """Get the next parsed reply, or ``notEnoughData``."""
        buf = self._buf
        if not buf or len(buf) < self._needed:
            return self.notEnoughData
        arena = self._parse(buf)
        if arena is None:
            return self.notEnoughData
        del buf[: self._pos]
        self._reset()
        return Reply(arena)

    def has_data(self) -> bool:
        """Whether the buffer has data pending read."""
        return len(self._buf) > 0

    def clear(self):
        """Discard everything buffered, including any partial reply."""
        self._buf.clear()
        self._reset()

    def _reset(self):
        # Minimum buffer length before a new parse attempt can succeed.
        self._needed = 0
        # Offset of the first element not parsed yet.
        self._pos = 0
        self._types: list[ReplyType] = []
        self._starts: list[int] = []
        self._sizes: list[int] = []
        self._children: list = []
        # [array index, elements still to read]
        self._stack: list[list[int]] = []

    def _parse(self, buf: bytearray) -> ReplyArena | None:
        types, starts = self._types, self._starts
        sizes, children = self._sizes, self._children
        stack = self._stack
        pos = self._pos
        while True:
            line_end = buf.find(constants.SYM_CRLF, pos)
            if line_end == -1:
                self._pos = pos
                self._needed = len(buf) + 1
                return None
            tag = buf[pos]
            index = len(types)
            start, size, elements = 0, 0, None
            nxt = line_end + 2
            if tag in _SIMPLE:
                type_ = _SIMPLE[tag]
                start, size = pos + 1, line_end - pos - 1
            elif tag == _COLON:
                type_ = ReplyType.INTEGER
                size = self._integer(buf[pos + 1 : line_end])
            elif tag == _DOLLAR:
                type_ = ReplyType.STRING
                size = self._length(buf[pos + 1 : line_end])
                if size != -1:
                    start, end = nxt, nxt + size
                    if len(buf) < end + 2:
                        self._pos = pos
                        self._needed = end + 2
                        return None
                    if buf[end : end + 2] != constants.SYM_CRLF:
                        raise InvalidResponse(
                            f"Bulk string of length {size} is not terminated by CRLF."
                        )
                    nxt = end + 2
            elif tag == _STAR:
                type_ = ReplyType.ARRAY
                size = self._length(buf[pos + 1 : line_end])
                if size == 0:
                    elements = ()
                elif size > 0:
                    elements = []
            else:
                raise InvalidResponse(
                    f"Protocol error, got {chr(tag)!r} as reply type byte."
                )

            types.append(type_)
            starts.append(start)
            sizes.append(size)
            children.append(elements)
            if stack:
                parent = stack[-1]
                children[parent[0]].append(index)
                parent[1] -= 1
            pos = nxt

            if type_ == ReplyType.ARRAY and size > 0:
                stack.append([index, size])
                continue
            while stack and stack[-1][1] == 0:
                done, _ = stack.pop()
                children[done] = tuple(children[done])
            if not stack:
                self._pos = pos
                return ReplyArena(bytes(buf[:pos]), types, starts, sizes, children)

    @staticmethod
    def _integer(raw: bytearray) -> int:
        if _INTEGER.fullmatch(raw) is None:
            raise InvalidResponse(f"Invalid integer reply: {bytes(raw)!r}.")
        return int(raw)

    @classmethod
    def _length(cls, raw: bytearray) -> int:
        length = cls._integer(raw)
        if length < -1 or length > constants.MAX_BULK_LENGTH:
            raise InvalidResponse(f"Invalid length header: {length}.")
        return length


def decode(data: bytes) -> Reply:
    """Decode exactly one complete reply from ``data``.

    Raises:
        :py:class:`~resplink.sansio.exceptions.InvalidResponse` if ``data``
        is malformed, truncated, or holds more than one reply.
    """
    reader = ReplyReader()
    reader.feed(data)
    reply = reader.gets()
    if reply is False:
        raise InvalidResponse("Truncated reply.")
    if reader.has_data():
        raise InvalidResponse("Trailing data after reply.")
    return reply
