import os
import logging
import pytz
from dotenv import load_dotenv

load_dotenv()

CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))

class Settings:
    # Channel Configuration (fixed, shared by convention with the server)
    PIPE_NAME = 'KioskOrderConfirmation'
    CONNECT_TIMEOUT_MS = 5000
    CONNECT_POLL_INTERVAL_MS = 100
    RECONNECT_DELAY_MS = 1000
    MAX_LINE_BYTES = 1024 * 1024

    # Display Policy
    STATUS_EVERY_N_ATTEMPTS = 5
    DETAIL_FIRST_ORDERS = 3
    DETAIL_EVERY_N_ORDERS = 5
    PREVIEW_CHARS = 200

    # Application Settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    TIMEZONE = os.getenv('TIMEZONE', 'UTC')

    # File Paths
    TEMPLATES_FILE = os.getenv('TEMPLATES_FILE', os.path.join(CONFIG_DIR, 'templates.yaml'))
    LOG_DIR = os.getenv('LOG_DIR', os.path.expanduser('~/.order-listener/logs'))

    @classmethod
    def validate(cls):
        """Validate environment-provided settings"""
        if not isinstance(getattr(logging, cls.LOG_LEVEL.upper(), None), int):
            raise ValueError(f"Invalid LOG_LEVEL: {cls.LOG_LEVEL}")

        try:
            pytz.timezone(cls.TIMEZONE)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown TIMEZONE: {cls.TIMEZONE}")

settings = Settings()
