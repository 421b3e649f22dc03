"""
Logging for the newsroom services.

Both services log through the "newsroom" logger tree. Every record is tagged
with the name of the service that emitted it, so generator and support output
can share one sink: a readable line in development, one JSON object per line
in production.
"""
import logging
import logging.config
import sys
from typing import Any, Dict, Optional

from .settings import Settings, get_settings

# Service name -> package whose loggers belong to it
SERVICE_PACKAGES = {
    "generator": "newsroom.generation",
    "support": "newsroom.support",
}

# Third-party loggers that flood the output at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "google_genai")


class ServiceFilter(logging.Filter):
    """Stamp records with the emitting service's name."""

    def __init__(self, service: str = "newsroom"):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service
        return True


def get_logging_config(service_name: Optional[str] = None, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Build the dictConfig for one service process."""
    settings = settings or get_settings()
    production = settings.environment == "production"
    service = service_name or "newsroom"

    handler = {
        "class": "logging.StreamHandler",
        "level": settings.log_level,
        "formatter": "json" if production else "console",
        "filters": ["service"],
        "stream": sys.stdout,
    }

    loggers: Dict[str, Dict[str, Any]] = {
        "newsroom": {"level": settings.log_level, "handlers": ["console"], "propagate": False},
        "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
    }
    # The service's own package follows log_level, the other service's stays at WARNING
    for name, package in SERVICE_PACKAGES.items():
        loggers[package] = {"level": settings.log_level if name == service else "WARNING"}
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING", "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "service": {"()": ServiceFilter, "service": service},
        },
        "formatters": {
            "json": {
                "format": "%(asctime)s %(levelname)s %(service)s %(name)s %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
            },
            "console": {
                "format": "%(asctime)s [%(service)s] [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {"console": handler},
        "loggers": loggers,
        "root": {"level": settings.log_level, "handlers": ["console"]},
    }


def setup_logging(service_name: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """Configure logging for a service process."""
    logging.config.dictConfig(get_logging_config(service_name, settings))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
