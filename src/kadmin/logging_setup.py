"""
kadmin - logging setup

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from kadmin.config import Config

import logging
import sys

LOG = logging.getLogger(__name__)

PACKAGE_LOGGER = "kadmin"


def configure_logging(*, config: Config) -> logging.Handler | None:
    """Attach a handler to the `kadmin` logger namespace.

    The root logger belongs to the embedding application and is left untouched.
    The handler is named after `config.client_id`, so configuring the same client
    again replaces its handler instead of stacking a second one.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.log_level.upper())

    handler: logging.Handler | None = None
    match config.log_handler:
        case "stdout" | None:
            handler = logging.StreamHandler(stream=sys.stdout)
        case "systemd":
            from systemd import journal

            handler = journal.JournalHandler(SYSLOG_IDENTIFIER=config.client_id)
        case _:
            LOG.warning("Log handler %s not recognized, %s handler not set.", config.log_handler, config.client_id)
            return None

    for existing in list(logger.handlers):
        if existing.get_name() == config.client_id:
            logger.removeHandler(existing)

    handler.setFormatter(logging.Formatter(config.log_format))
    handler.setLevel(config.log_level.upper())
    handler.set_name(config.client_id)
    logger.addHandler(handler)
    return handler
