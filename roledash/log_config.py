import logging
import os
import sys

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger and structlog with JSON output.

    The level comes from ``ROLEDASH_LOG_LEVEL`` unless ``debug`` forces
    ``DEBUG``.
    """
    if debug:
        level = logging.DEBUG
    else:
        level_name = os.getenv("ROLEDASH_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(name)s [%(levelname)s] %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
