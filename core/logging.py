"""
Structured logging configuration
Supports both JSON and text formats for different environments
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from core.config import Settings, settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def __init__(self, *args, app_name: str = "", environment: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["app"] = self.app_name
        log_record["environment"] = self.environment
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure logging based on environment settings"""
    config = config or settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)

    if config.log_format == "json":
        formatter = CustomJsonFormatter(
            "%(level)s %(name)s %(message)s",
            app_name=config.app_name,
            environment=config.environment,
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Adjust third-party loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter to add context to all log messages"""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add context to log messages"""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra

        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger instance with optional context

    Args:
        name: Logger name (usually __name__)
        **context: Additional context to include in all logs

    Returns:
        LoggerAdapter instance

    Example:
        logger = get_logger(__name__, domain="d7_storefront")
        logger.info("Checkout session created", extra={"session_id": session_id})
    """
    logger = logging.getLogger(name)
    return LoggerAdapter(logger, context)


# Initialize logging on import
setup_logging()
