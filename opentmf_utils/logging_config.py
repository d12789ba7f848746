"""
Logging configuration for the OpenTMF utilities

Diagnostics always go to stderr so stdout carries nothing but the listing.
"""

import logging
import logging.config
import json
from datetime import datetime, timezone
from typing import Dict, Any

from opentmf_utils.config import Settings

_RECORD_ATTRIBUTES = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "message", "asctime",
}


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add any extra fields
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """
    Build the dictConfig mapping for the given settings

    Args:
        settings: Application settings

    Returns:
        Dict accepted by logging.config.dictConfig
    """
    use_json = settings.log_format == "json"
    handlers = ["console"]

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JSONFormatter
            },
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "json" if use_json else "detailed",
                "stream": "ext://sys.stderr"
            }
        },
        "loggers": {
            "opentmf_utils": {
                "level": settings.log_level,
                "handlers": handlers,
                "propagate": False
            }
        }
    }

    if settings.log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.log_level,
            "formatter": "json" if use_json else "standard",
            "filename": str(settings.log_file),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5
        }
        handlers.append("file")

    return config


def setup_logging(settings: Settings) -> None:
    """Configure logging for the utilities"""
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(settings))

    logger = logging.getLogger(__name__)
    logger.debug(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "format": settings.log_format
        }
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter to add context to logs"""

    def process(self, msg, kwargs):
        if "extra" not in kwargs:
            kwargs["extra"] = {}

        kwargs["extra"].update(self.extra)

        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """Get a logger with context"""
    logger = logging.getLogger(name)
    return LoggerAdapter(logger, context)
