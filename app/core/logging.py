import logging
import os
import sys
from logging.config import dictConfig
from app.core.config import APP_ENV

DEFAULT_LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"


def setup_logging(level: str | None = None):
    log_level = (level or os.getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s | %(levelname)s | "
                        "%(name)s | %(message)s"
                    ),
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | "
                        "%(client_addr)s | %(method)s | "
                        "%(path)s | %(status_code)s | "
                        "%(process_time_ms)sms"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # Used by request_logging_middleware
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                # Outbound webhook calls are logged by the workflow client
                "httpx": {
                    "level": "WARNING",
                },
                "apscheduler": {
                    "level": "INFO",
                },
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": log_level,
                "handlers": ["console"],
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
