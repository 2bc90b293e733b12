"""Centralized logging configuration."""

import logging

from config import settings

NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "plaid",
    "keyring",
)


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the application.

    The root level comes from ``level`` when given, otherwise from
    settings.LOG_LEVEL. Outside development, timestamps carry the date
    so link and transfer logs can be matched against Dwolla's dashboard.
    Third-party loggers are capped at WARNING.
    """
    datefmt = "%H:%M:%S" if settings.ENVIRONMENT == "development" else "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt=datefmt,
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
