from __future__ import annotations

from resplink.sansio.exceptions import (
    AuthenticationError,
    BusyLoadingError,
    ExecAbortError,
    NoPermissionError,
    NoScriptError,
    ReadOnlyError,
    RemoteError,
    WrongTypeError,
)
from resplink.sansio.types import ExceptionMappingT

__all__ = ("parse_error", "str_if_bytes")


def str_if_bytes(val: str | bytes | bytearray | memoryview) -> str:
    """If a value is bytes, decode to string."""
    if isinstance(val, memoryview):
        return val.tobytes().decode(errors="replace")
    return val.decode(errors="replace") if isinstance(val, (bytes, bytearray)) else val


def parse_error(response: str | bytes) -> RemoteError:
    """Parse an error reply into a Python exception.

    The exception is returned, not raised.
    """

    decoded: str = str_if_bytes(response)
    error_code, _, message = decoded.partition(" ")
    if not message or not error_code.isupper():
        # No code prefix, keep the whole line as the message.
        return RemoteError(decoded, code="")

    exctype_or_dict = EXCEPTION_CLASSES.get(error_code, RemoteError)
    exctype: type[RemoteError] = (
        exctype_or_dict.get(message, RemoteError)
        if isinstance(exctype_or_dict, dict)
        else exctype_or_dict
    )
    return exctype(message, code=error_code)


EXCEPTION_CLASSES: ExceptionMappingT = {
    "ERR": {
        "Client sent AUTH, but no password is set": AuthenticationError,
        "invalid password": AuthenticationError,
    },
    "EXECABORT": ExecAbortError,
    "LOADING": BusyLoadingError,
    "NOSCRIPT": NoScriptError,
    "READONLY": ReadOnlyError,
    "NOAUTH": AuthenticationError,
    "WRONGPASS": AuthenticationError,
    "NOPERM": NoPermissionError,
    "WRONGTYPE": WrongTypeError,
}
