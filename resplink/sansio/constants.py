import errno

NONBLOCKING_EXCEPTION_ERROR_NUMBERS = {
    BlockingIOError: errno.EWOULDBLOCK,
    InterruptedError: errno.EINTR,
}

NONBLOCKING_EXCEPTIONS = tuple(NONBLOCKING_EXCEPTION_ERROR_NUMBERS.keys())
SYM_CRLF = b"\r\n"

DEFAULT_READ_SIZE = 65536
# RESP length headers are bounded by the server's proto-max-bulk-len (512MB).
MAX_BULK_LENGTH = 512 * 1024 * 1024

SERVER_CLOSED_CONNECTION_ERROR = "Connection closed by server."
SESSION_POISONED_ERROR = "Connection is unusable after a previous fatal error."
SESSION_CLOSED_ERROR = "Connection has been closed."
