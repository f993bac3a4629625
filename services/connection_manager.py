import sys
import asyncio
import logging
from datetime import datetime
from typing import Optional, Tuple
import pytz
from config.settings import settings
from models.connection_state import ConnectionState, ConnectionStatus
from services.errors import ConnectFailure, ConnectTimeout, StreamReadFailure
from services.message_handler import MessageHandler
from services.notification_service import NotificationService
from utils.helpers import channel_address

logger = logging.getLogger(__name__)

# Windows reports a pipe with no free server instance as ERROR_PIPE_BUSY
ERROR_PIPE_BUSY = 231

class ConnectionManager:
    """Keeps one receive-only connection to the order channel alive.

    Each cycle makes a single connection attempt, streams messages into the
    message handler while connected, then pauses before the next attempt.
    Counters live in the shared ConnectionState and are never reset, so the
    attempt and message numbers keep counting across reconnects.
    """

    def __init__(self, state: ConnectionState, message_handler: MessageHandler,
                 notification_service: NotificationService, address: Optional[str] = None,
                 connect_timeout: Optional[float] = None, reconnect_delay: Optional[float] = None,
                 poll_interval: Optional[float] = None):
        self.state = state
        self.message_handler = message_handler
        self.notification_service = notification_service
        self.address = address or channel_address(settings.PIPE_NAME)
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.CONNECT_TIMEOUT_MS / 1000
        self.reconnect_delay = reconnect_delay if reconnect_delay is not None else settings.RECONNECT_DELAY_MS / 1000
        self.poll_interval = poll_interval if poll_interval is not None else settings.CONNECT_POLL_INTERVAL_MS / 1000
        self.status_every = settings.STATUS_EVERY_N_ATTEMPTS
        self.max_line_bytes = settings.MAX_LINE_BYTES
        self.critical_logger = logging.getLogger('critical')

    async def attempt_connect(self) -> Tuple[asyncio.StreamReader, object]:
        """Open the channel, waiting up to connect_timeout for it to appear.

        Returns the reader and the handle to close when done. Raises
        ConnectTimeout when the server never showed up and ConnectFailure
        for anything else.
        """
        try:
            return await asyncio.wait_for(self._open_when_available(), timeout=self.connect_timeout)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise ConnectTimeout(f"no server on {self.address} within {self.connect_timeout:g}s", e)
        except OSError as e:
            raise ConnectFailure(f"cannot connect to {self.address}", e)

    async def _open_when_available(self):
        while True:
            try:
                return await self._open_channel()
            except (FileNotFoundError, ConnectionRefusedError) as e:
                # Server not listening yet, or between two client connections
                logger.debug(f"Channel not available yet: {e}")
            except OSError as e:
                if getattr(e, 'winerror', None) != ERROR_PIPE_BUSY:
                    raise
            await asyncio.sleep(self.poll_interval)

    async def _open_channel(self):
        if sys.platform == 'win32':
            loop = asyncio.get_running_loop()
            reader = asyncio.StreamReader(limit=self.max_line_bytes)
            protocol = asyncio.StreamReaderProtocol(reader)
            transport, _ = await loop.create_pipe_connection(lambda: protocol, self.address)
            return reader, transport

        return await asyncio.open_unix_connection(self.address, limit=self.max_line_bytes)

    async def _close(self, handle):
        handle.close()
        wait_closed = getattr(handle, 'wait_closed', None)
        if wait_closed is None:
            return
        try:
            await wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing channel: {e}")

    async def run_cycle(self):
        """One attempt -> connect -> stream -> disconnect pass"""
        attempt = self.state.next_attempt()
        if self.state.status is ConnectionStatus.DISCONNECTED and attempt % self.status_every == 0:
            self.notification_service.waiting(attempt)

        self.state.status = ConnectionStatus.CONNECTING
        try:
            reader, handle = await self.attempt_connect()
        except ConnectTimeout as e:
            logger.debug(f"Attempt {attempt}: {e}")
            self.state.status = ConnectionStatus.DISCONNECTED
            return
        except ConnectFailure as e:
            logger.error(f"Attempt {attempt} failed: {e}")
            self.notification_service.error(e)
            self.state.status = ConnectionStatus.DISCONNECTED
            return

        cancelled = False
        try:
            if self.state.mark_connected(datetime.now(pytz.UTC)):
                logger.info(f"Connected to {self.address} on attempt {attempt}")
                self.notification_service.connected()
            await self.message_handler.consume(reader)
            logger.info("Server closed the channel")
        except StreamReadFailure as e:
            logger.warning(f"Channel read failed: {e}")
        except asyncio.CancelledError:
            cancelled = True
            raise
        finally:
            await self._close(handle)
            if self.state.mark_disconnected() and not cancelled:
                self.notification_service.connection_lost()

    async def _run_forever(self):
        while True:
            try:
                await self.run_cycle()
            except (asyncio.TimeoutError, TimeoutError) as e:
                logger.debug(f"Cycle timed out: {e}")
                self.state.mark_disconnected()
            except Exception as e:
                logger.exception(f"Unexpected error in connection cycle: {e}")
                self.critical_logger.error(f"Unexpected error in connection cycle: {e}")
                self.notification_service.error(e)
                self.state.mark_disconnected()

            await asyncio.sleep(self.reconnect_delay)

    async def run(self, shutdown_event: asyncio.Event):
        """Run connection cycles until shutdown_event is set.

        Setting the event interrupts whichever wait is in progress (connect,
        read or the reconnect pause) and closes the open connection.
        """
        logger.info(f"Listening for orders on {self.address}")
        runner = asyncio.ensure_future(self._run_forever())
        stopper = asyncio.ensure_future(shutdown_event.wait())
        try:
            await asyncio.wait({runner, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            runner.cancel()
            stopper.cancel()
            results = await asyncio.gather(runner, stopper, return_exceptions=True)

        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Connection loop ended with error: {result}")
        self.state.status = ConnectionStatus.DISCONNECTED
        logger.info("Connection manager stopped")
