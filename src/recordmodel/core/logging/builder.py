# recordmodel/core/logging/builder.py
"""
Build and apply the logging configuration.

    from recordmodel.config import get_settings
    from recordmodel.core.logging import setup_logging

    setup_logging(get_settings())

The library itself never configures logging on import; applications (and the test
suite) call `setup_logging` once at startup.
"""

import logging
import logging.config
from pathlib import Path

from recordmodel.config.settings import Settings
from recordmodel.core.logging.filters import OperationIdFilter, RedactFilter
from recordmodel.core.logging.formatters import PROJECT_NAME, ColorFormatter, JsonFormatter
from recordmodel.core.logging.handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color/dev or plain) and "json"
      - filters: "operation_id", "redact"
      - handlers: console, (file/error_file) OR error_console depending on LOG_TO_STDOUT
      - loggers: root, recordmodel, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(operation_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": PROJECT_NAME,
        },
    }

    filters = {
        "operation_id": {"()": OperationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if (not settings.LOG_TO_STDOUT) and (settings.LOG_DIR):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "recordmodel": {
                "level": settings.LOG_LEVEL,
                "handlers": [],
                "propagate": True,
            },
            "sqlalchemy.engine": {
                "level": "INFO" if (settings.ENABLE_SQL_LOGGING or settings.SQLALCHEMY_ECHO) else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging using settings.

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Register an OperationIdFilter on the root logger as a safety net, so records
         logged directly on the root still carry operation_id.
    """
    if (not settings.LOG_TO_STDOUT) and (settings.LOG_DIR):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    root = logging.getLogger()
    if not any(isinstance(f, OperationIdFilter) for f in root.filters):
        root.addFilter(OperationIdFilter())
