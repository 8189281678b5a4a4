from __future__ import annotations

import enum
from typing import Any

from resplink.sansio.errors import parse_error
from resplink.sansio.exceptions import RemoteError, ReplyReleasedError, TypeMismatch

__all__ = ("Reply", "ReplyArena", "ReplyType")


@enum.unique
class ReplyType(enum.IntEnum):
    STATUS = enum.auto()
    ERROR = enum.auto()
    INTEGER = enum.auto()
    STRING = enum.auto()
    ARRAY = enum.auto()


class ReplyArena:
    """The single owner of all storage for one decoded reply.

    Every node of the reply tree is a row in a set of flat tables, indexed
    in pre-order (the root is always index 0):

        - ``types[i]``: the node's :py:class:`ReplyType`.
        - ``starts[i]``: offset of the payload in ``buffer`` (status, error
          and string nodes only).
        - ``sizes[i]``: payload length for status, error and string nodes,
          the value itself for integers, the element count for arrays.
          ``-1`` marks a nil string or nil array.
        - ``children[i]``: the element indexes of an array node, ``None``
          for everything else (and for nil arrays).

    :py:class:`Reply` objects are ``(arena, index)`` views onto these tables.

    Releasing the arena drops the buffer, offsets and children. The type and
    size tables stay so that nil checks keep answering.
    """

    __slots__ = ("buffer", "types", "starts", "sizes", "children", "released")

    def __init__(
        self,
        buffer: bytes,
        types: list[ReplyType],
        starts: list[int],
        sizes: list[int],
        children: list[tuple[int, ...] | None],
    ):
        self.buffer = buffer
        self.types = types
        self.starts = starts
        self.sizes = sizes
        self.children = children
        self.released = False

    def __len__(self) -> int:
        return len(self.types)

    def payload(self, index: int) -> bytes:
        start = self.starts[index]
        return self.buffer[start : start + self.sizes[index]]

    def release(self):
        self.released = True
        self.buffer = b""
        self.starts, self.children = [], []


_KIND = {
    ReplyType.STATUS: "status",
    ReplyType.ERROR: "error",
    ReplyType.INTEGER: "integer",
    ReplyType.STRING: "string",
    ReplyType.ARRAY: "array",
}


class Reply:
    """A read-only view over one node of a decoded reply.

    The reply returned by the reader owns its :py:class:`ReplyArena`.
    Elements obtained through :py:meth:`as_array` borrow that arena: they are
    valid for as long as the top-level reply has not been released.

    Examples:
        >>> from resplink.sansio.reader import decode
        >>> with decode(b"*2\\r\\n$3\\r\\nfoo\\r\\n:1\\r\\n") as reply:
        ...     key, count = reply.as_array()
        ...     key.as_string(), count.as_integer()
        (b'foo', 1)
    """

    __slots__ = ("_arena", "_index")
    __hash__ = None

    def __init__(self, arena: ReplyArena, index: int = 0):
        self._arena = arena
        self._index = index

    def __enter__(self) -> Reply:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

    def __repr__(self) -> str:
        if self._arena.released:
            return "<Reply (released)>"
        return f"<Reply {self.kind} {self._value()!r}>"

    def __eq__(self, other):
        if not isinstance(other, Reply):
            return NotImplemented
        return self._tree() == other._tree()

    @property
    def type(self) -> ReplyType:
        return self._check().types[self._index]

    @property
    def kind(self) -> str:
        """A human readable name for this node, distinguishing nil values."""
        type_ = self.type
        if self.is_nil():
            return f"nil {_KIND[type_]}"
        return _KIND[type_]

    @property
    def is_root(self) -> bool:
        return self._index == 0

    @property
    def released(self) -> bool:
        return self._arena.released

    def release(self):
        """Drop the decode buffer shared by this reply and all of its elements.

        Only the top-level reply may do this. Any later access through this
        reply or any element view raises :py:class:`ReplyReleasedError`,
        except :py:meth:`is_nil`.
        """
        if not self.is_root:
            raise TypeError("Only the top-level reply can release its buffer.")
        self._arena.release()

    def is_nil(self) -> bool:
        """Whether this is a nil string or nil array. Never raises."""
        arena = self._arena
        return (
            arena.types[self._index] in (ReplyType.STRING, ReplyType.ARRAY)
            and arena.sizes[self._index] == -1
        )

    def as_string(self, encoding: str | None = None, errors: str = "strict") -> Any:
        """The payload of a non-nil bulk string.

        Returns ``bytes``, or ``str`` if an ``encoding`` is given.
        """
        arena = self._expect(ReplyType.STRING)
        if arena.sizes[self._index] == -1:
            raise TypeMismatch("string", self.kind)
        value = arena.payload(self._index)
        return value.decode(encoding, errors) if encoding else value

    def as_integer(self) -> int:
        arena = self._expect(ReplyType.INTEGER)
        return arena.sizes[self._index]

    def as_status(self) -> str:
        arena = self._expect(ReplyType.STATUS)
        return arena.payload(self._index).decode("utf-8", "replace")

    def as_array(self) -> tuple[Reply, ...]:
        """The elements of a non-nil array, as views sharing this reply's buffer."""
        arena = self._expect(ReplyType.ARRAY)
        children = arena.children[self._index]
        if children is None:
            raise TypeMismatch("array", self.kind)
        return tuple(Reply(arena, i) for i in children)

    def as_string_array(
        self, encoding: str | None = None, errors: str = "strict"
    ) -> list:
        return [e.as_string(encoding, errors) for e in self.as_array()]

    def as_error(self) -> RemoteError:
        """The error carried by an error reply, returned rather than raised."""
        arena = self._check()
        type_ = arena.types[self._index]
        if type_ != ReplyType.ERROR:
            raise TypeMismatch("error", self.kind)
        return parse_error(arena.payload(self._index))

    def to_python(self, encoding: str | None = None) -> Any:
        """Convert this reply and everything below it into plain Python values.

        Status replies become ``str``, error replies become
        :py:class:`RemoteError` instances (not raised), nil values become
        ``None``, and strings are decoded if an ``encoding`` is given.
        """
        type_ = self.type
        if type_ == ReplyType.ERROR:
            return self.as_error()
        if self.is_nil():
            return None
        if type_ == ReplyType.STATUS:
            return self.as_status()
        if type_ == ReplyType.INTEGER:
            return self.as_integer()
        if type_ == ReplyType.STRING:
            return self.as_string(encoding)
        return [e.to_python(encoding) for e in self.as_array()]

    def _check(self) -> ReplyArena:
        arena = self._arena
        if arena.released:
            raise ReplyReleasedError(
                "This reply's buffer was released by its top-level reply."
            )
        return arena

    def _expect(self, expected: ReplyType) -> ReplyArena:
        arena = self._check()
        type_ = arena.types[self._index]
        if type_ == ReplyType.ERROR:
            raise parse_error(arena.payload(self._index))
        if type_ != expected:
            raise TypeMismatch(_KIND[expected], self.kind)
        return arena

    def _value(self) -> Any:
        arena = self._arena
        i = self._index
        type_ = arena.types[i]
        if type_ == ReplyType.INTEGER:
            return arena.sizes[i]
        if arena.sizes[i] == -1:
            return None
        if type_ == ReplyType.ARRAY:
            return [Reply(arena, c) for c in arena.children[i]]
        return arena.payload(i)

    def _tree(self) -> tuple:
        arena = self._check()
        type_ = arena.types[self._index]
        if type_ == ReplyType.ARRAY and arena.children[self._index] is not None:
            return type_, tuple(e._tree() for e in self.as_array())
        return type_, self._value()

