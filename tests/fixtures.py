"""Test data and doubles for the listener tests."""

import asyncio


SAMPLE_ORDER = (
    '{"order_id":"O1","payment_method":"cash","user_session_id":"s1","items":[],'
    '"total_amount":9.99,"message":"ok","timestamp":"2024-01-01T00:00:00"}'
)


def order_line(order_id: str, total: str = "1.00") -> str:
    """A minimal valid order message."""
    return '{"order_id":"%s","total_amount":%s,"timestamp":"2024-01-01T00:00:00"}' % (order_id, total)


def feed_reader(*chunks: bytes, eof: bool = True) -> asyncio.StreamReader:
    """StreamReader pre-loaded with data; must be called inside a running loop."""
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    if eof:
        reader.feed_eof()
    return reader


class FailingReader:
    """Reader that returns canned lines and then fails like a dropped pipe."""

    def __init__(self, *lines: bytes, error: Exception = None):
        self.lines = list(lines)
        self.error = error or ConnectionResetError("pipe broken")

    async def readuntil(self, separator: bytes = b"\n") -> bytes:
        if self.lines:
            return self.lines.pop(0)
        raise self.error


class FakeHandle:
    """Stands in for the transport returned by attempt_connect."""

    def __init__(self):
        self.closed = False

    def close(self) -> None:
        self.closed = True
