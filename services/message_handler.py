import asyncio
import logging
from typing import AsyncIterator, Optional
from models.connection_state import ConnectionState
from models.order import OrderConfirmation
from services.errors import DecodeFailure, StreamReadFailure
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

class MessageHandler:
    """Turns a connected channel into decoded orders for the notifier.

    Every non-empty line bumps the received counter before decoding, so the
    sequence number handed to the notifier counts lines seen rather than
    orders decoded. A line that fails to decode is reported and dropped;
    the connection stays up.
    """

    def __init__(self, state: ConnectionState, notification_service: NotificationService):
        self.state = state
        self.notification_service = notification_service

    async def read_lines(self, reader: asyncio.StreamReader) -> AsyncIterator[Optional[str]]:
        """Yield newline-delimited text lines until the channel closes.

        A line longer than the reader's limit is skipped and yields None in
        its place. Only OSError is treated as a broken channel.
        """
        while True:
            try:
                raw = await reader.readuntil(b'\n')
            except asyncio.IncompleteReadError as e:
                # EOF: the unterminated tail, or b'' when nothing is left
                raw = e.partial
            except asyncio.LimitOverrunError as e:
                await self._discard_line(reader, e.consumed)
                yield None
                continue
            except OSError as e:
                raise StreamReadFailure("error reading from channel", e)

            if not raw:
                return

            yield raw.decode('utf-8', errors='replace').rstrip('\n').rstrip('\r')

    async def _discard_line(self, reader: asyncio.StreamReader, consumed: int):
        """Drop buffered bytes up to and including the next newline"""
        try:
            while True:
                await reader.readexactly(consumed)
                try:
                    await reader.readuntil(b'\n')
                    return
                except asyncio.LimitOverrunError as e:
                    consumed = e.consumed
        except asyncio.IncompleteReadError:
            return
        except OSError as e:
            raise StreamReadFailure("error reading from channel", e)

    async def consume(self, reader: asyncio.StreamReader):
        """Process lines from one connection until it ends"""
        async for line in self.read_lines(reader):
            if line is None:
                number = self.state.next_message()
                self._report(DecodeFailure("message exceeds the line length limit and was discarded"), number, "")
                continue
            if not line:
                continue

            number = self.state.next_message()
            self.process_message(line, number)

    def process_message(self, payload: str, number: int):
        """Decode a single message and hand it to the notifier"""
        try:
            order = OrderConfirmation.from_json(payload)
        except DecodeFailure as e:
            self._report(e, number, payload)
            return

        logger.debug(f"Decoded order {order.order_id} as message #{number}")
        self.notification_service.show_order(order, number)

    def _report(self, error: DecodeFailure, number: int, payload: str):
        logger.warning(f"Failed to decode message #{number}: {error}")
        self.notification_service.decode_error(error, payload)
