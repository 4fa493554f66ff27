"""JSON log output."""

import logging
from typing import Optional

from pythonjsonlogger import jsonlogger


def setup_logger(level: Optional[int] = None) -> None:
    """Attach a JSON formatter to the root logger."""
    log_handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    log_handler.setFormatter(formatter)
    logger = logging.getLogger()
    if not any(isinstance(h.formatter, jsonlogger.JsonFormatter)
               for h in logger.handlers):
        logger.addHandler(log_handler)
    logger.setLevel(level if level is not None else logging.INFO)
