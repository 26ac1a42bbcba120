from __future__ import annotations

import logging

from shared.logging.json import configure_logging as _shared_configure_logging

from .config import settings

_configured = False


def configure_logging(force: bool = False):
    """Install the JSON formatter on the root logger once per process.

    Only the process owner calls this (see ``lifecycle.metrics_repository``);
    importing the package leaves the host's handlers alone.
    """
    global _configured
    if _configured and not force:
        return
    _shared_configure_logging(
        service=settings.service_name,
        level=settings.app_log_level,
        environment=settings.app_environment,
        redaction_patterns=settings.app_log_redaction_patterns,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
