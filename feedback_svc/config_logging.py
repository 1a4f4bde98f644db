"""Logging configuration"""

import logging
import sys
from logging.config import dictConfig
from typing import Any, Optional

from dockerflow import logging as dockerflow_logging

from feedback_svc.configs import settings

# Log format -> handler writing it.
FORMAT_HANDLERS: dict[str, str] = {
    "mozlog": "console-mozlog",
    "pretty": "console-pretty",
}

# Third-party loggers that log every request at INFO.
NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the `feedback_svc` loggers.

    Args:
        level: Overrides `logging.level` from the settings, e.g. for `--verbose`
            runs of the CLI.
    """
    log_format = settings.logging.format
    handler = FORMAT_HANDLERS.get(log_format)
    if handler is None:
        raise ValueError(
            f"Invalid log format: {log_format}."
            f" Should be one of {', '.join(repr(name) for name in FORMAT_HANDLERS)}."
        )
    if settings.current_env.lower() == "production" and log_format != "mozlog":
        raise ValueError("Log format must be 'mozlog' in production")

    log_level = (level or settings.logging.level).upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": GCPCompatibleJSONFormatter,
                    "logger_name": "feedback_svc",
                },
            },
            "handlers": {
                "console-mozlog": {
                    "level": log_level,
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": sys.stdout,
                },
                "console-pretty": {
                    "level": log_level,
                    "class": "rich.logging.RichHandler",
                    "rich_tracebacks": True,
                },
            },
            "loggers": {
                "feedback_svc": _logger_config([handler], log_level),
                **{name: _logger_config([handler], "WARNING") for name in NOISY_LOGGERS},
            },
        }
    )


def _logger_config(handlers: list[str], level: str) -> dict[str, Any]:
    return {
        "handlers": handlers,
        "level": level,
        "propagate": settings.logging.can_propagate,
    }


class GCPCompatibleJSONFormatter(dockerflow_logging.JsonLogFormatter):
    """MozLog JSON with the numeric `severity` field Cloud Logging reads."""

    SEVERITY = {
        logging.CRITICAL: 600,
        logging.ERROR: 500,
        logging.WARNING: 400,
        logging.INFO: 200,
        logging.DEBUG: 100,
    }

    def convert_record(self, record):
        """Add `severity` to the MozLog record."""
        out = super().convert_record(record)
        out["severity"] = self.SEVERITY.get(record.levelno, 0)
        return out
