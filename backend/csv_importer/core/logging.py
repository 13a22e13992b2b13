"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from csv_importer.core.config import settings


def setup_logging() -> None:
    """Configure JSON structured logging for production, human-readable for dev.

    Fields passed through ``extra=`` (row numbers, error counts) become JSON
    keys in production output.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
