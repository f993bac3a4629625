import sys
import logging
from datetime import datetime
from typing import Optional, TextIO
from config.settings import settings
from models.connection_state import ConnectionState
from models.order import OrderConfirmation
from services.template_manager import TemplateManager
from utils.helpers import format_datetime, preview

logger = logging.getLogger(__name__)

class NotificationService:
    """Renders listener status lines and order notifications to the console"""

    def __init__(self, template_manager: TemplateManager, stream: Optional[TextIO] = None):
        self.template_manager = template_manager
        self.stream = stream
        self.detail_first = settings.DETAIL_FIRST_ORDERS
        self.detail_every = settings.DETAIL_EVERY_N_ORDERS
        self.preview_chars = settings.PREVIEW_CHARS

    def _write(self, text: str):
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(text + "\n")
        stream.flush()

    def _render(self, template_key: str, **kwargs):
        self._write(self.template_manager.format_message(template_key, **kwargs))

    def _now(self) -> str:
        return format_datetime('time')

    def banner(self, pipe_name: str, started: datetime):
        self._render('banner', pipe=pipe_name, started=format_datetime('datetime', started))

    def waiting(self, attempt: int):
        self._render('waiting', time=self._now(), attempt=attempt)

    def connected(self):
        self._render('connected', time=self._now())

    def connection_lost(self):
        self._render('connection_lost', time=self._now())

    def error(self, error: Exception):
        self._render('error', time=self._now(), error=error)

    def decode_error(self, error: Exception, payload: str):
        self._render(
            'decode_error',
            time=self._now(),
            error=error,
            limit=self.preview_chars,
            preview=preview(payload, self.preview_chars)
        )

    def wants_details(self, number: int) -> bool:
        """Full detail for the first few orders, then every Nth"""
        return number <= self.detail_first or number % self.detail_every == 0

    def show_order(self, order: OrderConfirmation, number: int) -> bool:
        """Render one order; returns True when the detailed view was shown"""
        logger.info(f"Order #{number}: id={order.order_id} total={order.total_amount} items={order.item_count}")
        self._render(
            'order_summary',
            time=self._now(),
            number=number,
            order_id=order.order_id,
            payment_method=order.payment_method,
            total=order.total_amount,
            item_count=order.item_count
        )

        if not self.wants_details(number):
            return False

        self._render(
            'order_details',
            user=order.user_session_id,
            timestamp=order.timestamp,
            message=order.message
        )
        if order.items:
            self._render('items_header')
            for item in order.items:
                self._render('order_item', name=item.product_name, quantity=item.quantity, price=item.price)
        return True

    def shutdown_summary(self, state: ConnectionState, stopped: datetime):
        first_connected = "never"
        if state.first_connected_at is not None:
            first_connected = format_datetime('datetime', state.first_connected_at)
        self._render(
            'shutdown_summary',
            stopped=format_datetime('datetime', stopped),
            orders=state.messages_received,
            attempts=state.attempts,
            first_connected=first_connected
        )
