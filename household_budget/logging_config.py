"""
Logging for the Household Budget API.

Everything the application logs goes through the ``household_budget`` logger
tree; modules get their logger with ``get_logger(__name__)``. Levels and the
optional log file come from the environment unless passed explicitly:

    APP_LOG_LEVEL          application loggers (default INFO)
    THIRD_PARTY_LOG_LEVEL  SQLAlchemy, uvicorn, httpx, faker (default WARNING)
    LOG_FILE               also write to this file, rotated at 10MB
"""
import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Dict, Optional


APP_LOGGER_NAME = "household_budget"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LIBRARIES = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "faker",
)


def _level(name: Optional[str], fallback: str) -> str:
    name = (name or fallback).upper()
    return name if isinstance(logging.getLevelName(name), int) else fallback


def build_logging_config(
    app_log_level: Optional[str] = None,
    third_party_log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> Dict[str, Any]:
    """dictConfig schema for the application and the libraries it quiets. Unknown level names fall back."""
    app_level = _level(app_log_level or os.getenv("APP_LOG_LEVEL"), "INFO")
    library_level = _level(third_party_log_level or os.getenv("THIRD_PARTY_LOG_LEVEL"), "WARNING")
    log_file = log_file or os.getenv("LOG_FILE")

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "standard",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": max_file_size,
            "backupCount": backup_count,
            "formatter": "standard",
        }

    loggers: Dict[str, Dict[str, Any]] = {
        APP_LOGGER_NAME: {"level": app_level, "handlers": list(handlers), "propagate": False},
    }
    for name in NOISY_LIBRARIES:
        loggers[name] = {"level": library_level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}},
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(**options) -> logging.Logger:
    """Apply build_logging_config(**options) and return the application logger. Safe to call again."""
    config = build_logging_config(**options)
    if "file" in config["handlers"]:
        Path(config["handlers"]["file"]["filename"]).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config)
    return logging.getLogger(APP_LOGGER_NAME)


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """
    Logger for a module.

    Names already inside the package (``household_budget.crud.crud_account``)
    are used as-is; anything else is nested under the application logger.
    """
    if name == APP_LOGGER_NAME or name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
