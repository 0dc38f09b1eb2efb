"""Logging setup for the application."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(app) -> None:
    """
    Configures the root logger once per process and aligns the app logger.

    Service modules log through logging.getLogger(__name__) so their records
    propagate to the root handler installed here.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level_name, format=LOG_FORMAT)
    else:
        root.setLevel(level_name)

    app.logger.setLevel(level_name)
    logging.getLogger("cryptodash").setLevel(level_name)
