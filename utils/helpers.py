import sys
import tempfile
import pytz
from datetime import datetime
from typing import Optional
from config.settings import settings

def channel_address(pipe_name: str) -> str:
    """Resolve a pipe name to the endpoint the server listens on.

    Windows servers expose a real named pipe. Elsewhere .NET and go-winio
    style servers back the pipe with a Unix domain socket in the temp dir.
    """
    if sys.platform == 'win32':
        return f'\\\\.\\pipe\\{pipe_name}'
    return f'{tempfile.gettempdir()}/CoreFxPipe_{pipe_name}'

def preview(text: str, limit: Optional[int] = None) -> str:
    """First `limit` characters of a payload for error reports"""
    if limit is None:
        limit = settings.PREVIEW_CHARS
    return text[:max(limit, 0)]

def format_datetime(format_type: str, dt: Optional[datetime] = None) -> str:
    """Format datetime for the configured timezone"""
    if dt is None:
        dt = datetime.now(pytz.UTC)

    utc = pytz.UTC
    local_tz = pytz.timezone(settings.TIMEZONE)

    if dt.tzinfo is None:
        dt = utc.localize(dt)

    local_dt = dt.astimezone(local_tz)

    if format_type == 'time':
        return local_dt.strftime("%H:%M:%S")
    elif format_type == 'date':
        return local_dt.strftime("%Y-%m-%d")
    elif format_type == 'datetime':
        return local_dt.strftime("%Y-%m-%d %H:%M:%S")
    else:
        return local_dt.strftime("%Y-%m-%d %H:%M:%S")

def setup_logging():
    """Setup logging configuration"""
    import logging
    import logging.handlers
    import os

    # Create logs directory if it doesn't exist
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    # Main application logger
    main_logger = logging.getLogger()
    main_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Main log file handler with rotation
    main_handler = logging.handlers.TimedRotatingFileHandler(
        filename=os.path.join(settings.LOG_DIR, 'order-listener.log'),
        when='midnight',
        interval=1,
        backupCount=7,  # Keep 1 week of logs
        encoding='utf-8'
    )
    main_handler.setFormatter(formatter)
    main_logger.addHandler(main_handler)

    # Unexpected errors log
    critical_logger = logging.getLogger('critical')
    critical_handler = logging.handlers.TimedRotatingFileHandler(
        filename=os.path.join(settings.LOG_DIR, 'critical-errors.log'),
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
    critical_handler.setFormatter(formatter)
    critical_logger.addHandler(critical_handler)

    # Template updates log
    template_logger = logging.getLogger('templates')
    template_handler = logging.handlers.TimedRotatingFileHandler(
        filename=os.path.join(settings.LOG_DIR, 'template-updates.log'),
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
    template_handler.setFormatter(formatter)
    template_logger.addHandler(template_handler)

    # Console gets warnings only; notifications are written separately
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    main_logger.addHandler(console_handler)

    logging.info("Logging system initialized")
