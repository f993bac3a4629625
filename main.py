#!/usr/bin/env python3
"""
Order Confirmation Listener
Main entry point for the order confirmation listener
"""

import asyncio
import logging
import signal
import sys
from datetime import datetime
import pytz
from config.settings import settings
from models.connection_state import ConnectionState
from services.connection_manager import ConnectionManager
from services.message_handler import MessageHandler
from services.notification_service import NotificationService
from services.template_manager import TemplateManager
from utils.helpers import setup_logging

logger = logging.getLogger(__name__)

class OrderListener:
    def __init__(self):
        self.shutdown_event = None
        self.state = None
        self.template_manager = None
        self.notification_service = None
        self.message_handler = None
        self.connection_manager = None

    def initialize_services(self):
        """Initialize all services"""
        try:
            logger.info("Initializing Order Confirmation Listener...")

            # Validate settings
            settings.validate()

            # Initialize services
            self.state = ConnectionState()
            self.template_manager = TemplateManager()
            self.notification_service = NotificationService(self.template_manager)
            self.message_handler = MessageHandler(self.state, self.notification_service)
            self.connection_manager = ConnectionManager(
                self.state,
                self.message_handler,
                self.notification_service
            )

            logger.info("All services initialized successfully")
            return True

        except (ValueError, OSError) as e:
            logger.error(f"Failed to initialize services: {e}")
            return False

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop):
        """Setup signal handlers for graceful shutdown"""
        def signal_handler(signum):
            logger.info(f"Received signal {signum}, initiating shutdown...")
            self.shutdown_event.set()

        for signum in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Windows event loops: fall back to the synchronous handler
                signal.signal(signum, lambda s, frame: loop.call_soon_threadsafe(signal_handler, s))

    def cleanup(self):
        """Cleanup resources"""
        logger.info("Cleaning up resources...")

        if self.template_manager:
            self.template_manager.stop_watching()

        logger.info("Cleanup completed successfully")

    async def run_async(self):
        self.shutdown_event = asyncio.Event()
        self.setup_signal_handlers(asyncio.get_running_loop())

        self.notification_service.banner(settings.PIPE_NAME, datetime.now(pytz.UTC))
        await self.connection_manager.run(self.shutdown_event)
        self.notification_service.shutdown_summary(self.state, datetime.now(pytz.UTC))

    def run(self):
        """Main run method"""
        try:
            # Initialize services
            if not self.initialize_services():
                logger.error("Service initialization failed, exiting...")
                return 1

            asyncio.run(self.run_async())
            return 0

        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
            return 0

        finally:
            self.cleanup()

def main():
    """Entry point"""
    # Setup logging first
    setup_logging()

    logger.info("=" * 50)
    logger.info("Order Confirmation Listener Starting")
    logger.info("=" * 50)

    app = OrderListener()
    exit_code = app.run()

    logger.info("=" * 50)
    logger.info("Order Confirmation Listener Stopped")
    logger.info("=" * 50)

    sys.exit(exit_code)

if __name__ == "__main__":
    main()
