"""Error types raised by the channel connection and the message decoder."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    TIMEOUT = "timeout"
    CONNECT_FAILURE = "connect_failure"
    READ_FAILURE = "read_failure"
    DECODE_FAILURE = "decode_failure"


class ChannelError(Exception):
    """Base class for listener errors."""

    kind: ErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause and str(self.cause) != self.message:
            return f"{self.message}: {self.cause}"
        return self.message


class ConnectTimeout(ChannelError):
    """The channel did not accept a connection before the deadline."""

    kind = ErrorKind.TIMEOUT


class ConnectFailure(ChannelError):
    """Connecting failed for a reason other than a timeout."""

    kind = ErrorKind.CONNECT_FAILURE


class StreamReadFailure(ChannelError):
    """Reading from a connected channel failed."""

    kind = ErrorKind.READ_FAILURE


class DecodeFailure(ChannelError):
    """A single message could not be decoded into an order."""

    kind = ErrorKind.DECODE_FAILURE
