"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging

from .env import optional_env_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
NOISY_LOGGERS = ("alembic.runtime.migration", "sqlalchemy.engine")


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    ``level`` falls back to ``LEDGERDESK_LOG_LEVEL`` and then INFO. Migration and
    engine chatter is held at WARNING unless DEBUG is requested.
    """

    effective = level or optional_env_var("LEDGERDESK_LOG_LEVEL") or logging.INFO
    if isinstance(effective, str):
        effective = effective.upper()
    logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if logging.getLogger().getEffectiveLevel() > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
