import logging
import re
import sys
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime, timedelta
from typing import Dict
from snti.config import settings

LOG_FILES: Dict[str, str] = {
    "app": "snti.log",
    "errors": "snti-errors.log",
    "documents": "snti-documents.log",
}

# Loggers that act on stored files; their records also go to the documents trail
DOCUMENT_LOGGERS = (
    "snti.services.storage_service",
    "snti.services.document_service",
    "snti.services.permiso_service",
    "snti.services.saga",
)

QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "asyncio": logging.WARNING,
    "passlib": logging.ERROR,
    "multipart": logging.WARNING,
}

REQUEST_ID_IN_MESSAGE = re.compile(r'\s*\|\s*RequestID:\s*([a-f0-9-]{36})', re.IGNORECASE)
ROTATED_SUFFIX = "%Y-%m-%d"


class RequestIDFormatter(logging.Formatter):
    """Formatter that prints the request ID of the record, or [SYSTEM] outside a request."""

    LINE_FORMAT = '%(asctime)s - %(levelname)s - %(request_id)s - [%(filename)s:%(lineno)d] - %(funcName)s - %(message)s'

    def __init__(self, datefmt: str = '%Y-%m-%d %H:%M:%S'):
        super().__init__(self.LINE_FORMAT, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, 'RequestID', None) or getattr(record, 'request_id', None)

        # sanitize_log_message appends "| RequestID: <uuid>" to the message
        if not request_id and isinstance(record.msg, str):
            match = REQUEST_ID_IN_MESSAGE.search(record.msg)
            if match:
                request_id = match.group(1)
                record.msg = REQUEST_ID_IN_MESSAGE.sub('', record.msg)

        if request_id:
            record.request_id = f"[{str(request_id).strip('[]')}]"
        else:
            record.request_id = '[SYSTEM]'

        return super().format(record)


def daily_file_handler(path: Path, level: int, formatter: logging.Formatter) -> TimedRotatingFileHandler:
    """Handler rotated at midnight into <name>.YYYY-MM-DD."""
    handler = TimedRotatingFileHandler(
        filename=str(path),
        when='midnight',
        interval=1,
        backupCount=settings.LOG_RETENTION_DAYS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.suffix = ROTATED_SUFFIX
    return handler


def setup_logging() -> None:
    """
    Configure logging for the API.

    Every record goes to stdout and LOG_DIR/snti.log. Warnings and errors are
    duplicated into snti-errors.log, and the storage, upload and permiso
    services also write to snti-documents.log so the lifecycle of each stored
    file can be followed on its own.
    """
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = settings.get_log_level()
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = RequestIDFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(daily_file_handler(log_dir / LOG_FILES["app"], numeric_level, formatter))
    root_logger.addHandler(daily_file_handler(log_dir / LOG_FILES["errors"], logging.WARNING, formatter))

    documents_handler = daily_file_handler(log_dir / LOG_FILES["documents"], logging.INFO, formatter)
    for name in DOCUMENT_LOGGERS:
        document_logger = logging.getLogger(name)
        document_logger.handlers = [h for h in document_logger.handlers if not isinstance(h, TimedRotatingFileHandler)]
        document_logger.addHandler(documents_handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).info(
        f"Logging configured - Level: {log_level}, Directory: {log_dir.absolute()}"
    )


def cleanup_old_logs() -> int:
    """
    Delete rotated files of any of the API logs older than LOG_RETENTION_DAYS.

    Returns:
        Number of files removed
    """
    log_dir = Path(settings.LOG_DIR)
    if not log_dir.exists():
        return 0

    logger = logging.getLogger(__name__)
    cutoff = datetime.now() - timedelta(days=settings.LOG_RETENTION_DAYS)
    removed = 0

    for base_name in LOG_FILES.values():
        for rotated in log_dir.glob(f"{base_name}.*"):
            try:
                rotated_on = datetime.strptime(rotated.name[len(base_name) + 1:], ROTATED_SUFFIX)
            except ValueError:
                continue
            if rotated_on >= cutoff:
                continue
            try:
                rotated.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove old log file {rotated.name}: {e}")

    if removed:
        logger.info(f"Removed {removed} rotated log file(s) older than {settings.LOG_RETENTION_DAYS} days")
    return removed
