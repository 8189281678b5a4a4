"""Core exceptions raised by the RESP client"""
import builtins


class RedisError(Exception):
    pass


class ConnectError(builtins.ConnectionError, RedisError):
    """The transport could not be established. No session exists afterwards."""

    pass


class ConnectionLost(builtins.ConnectionError, RedisError):
    """The transport failed while in use. Always fatal to the session."""

    pass


class PoisonedSessionError(ConnectionLost):
    """An operation was attempted on a session that already failed or was closed."""

    pass


class RedisTimeoutError(builtins.TimeoutError, ConnectionLost):
    pass


class ProtocolError(RedisError):
    pass


class InvalidResponse(ProtocolError):
    """The byte-stream does not follow the RESP grammar."""

    pass


class RemoteError(ProtocolError):
    """The server answered with an error reply.

    ``code`` is the leading upper-case word of the reply (e.g. ``ERR``,
    ``WRONGTYPE``), ``message`` the remainder.
    """

    def __init__(self, message: str, code: str = "ERR"):
        super().__init__(message)
        self.code = code
        self.message = message

    def __eq__(self, other):
        if not isinstance(other, RemoteError):
            return NotImplemented
        return (self.__class__, self.code, self.message) == (
            other.__class__,
            other.code,
            other.message,
        )

    def __hash__(self):
        return hash((self.__class__, self.code, self.message))


class BusyLoadingError(RemoteError):
    pass


class NoScriptError(RemoteError):
    pass


class ExecAbortError(RemoteError):
    pass


class ReadOnlyError(RemoteError):
    pass


class NoPermissionError(RemoteError):
    pass


class WrongTypeError(RemoteError):
    pass


class AuthenticationError(RemoteError):
    pass


class TypeMismatch(builtins.TypeError, RedisError):
    """A typed projection was applied to a reply of another type."""

    def __init__(self, expected: str, actual: str):
        super().__init__(f"Expected a {expected} reply, got {actual}.")
        self.expected = expected
        self.actual = actual


class ReplyReleasedError(RedisError):
    """A reply view was used after its top-level reply released the buffer."""

    pass


class DataError(RedisError):
    pass
