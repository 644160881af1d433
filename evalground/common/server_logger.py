# -*- coding: utf-8 -*-
"""
server_logger

Logging setup helpers.
"""
import logging
import logging.handlers
import os
from typing import Optional

DEFAULT_LOGGER_FILENAME = "workspace/eval_api.log"


def init_logger(logger_config: Optional[dict]):
    if logger_config is None:
        logger_config = {}
    logger_filename = logger_config.get("logger_filename", DEFAULT_LOGGER_FILENAME)
    log_dir = os.path.dirname(logger_filename)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(logger_config.get("level", "DEBUG"))
    handler = logging.handlers.RotatingFileHandler(
        logger_filename, maxBytes=10 * 1024 * 1024, backupCount=5
    )
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)s %(message)s"
    )
    logger.handlers = []
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    enable_stdout = logger_config.get("enable_stdout", False)
    if enable_stdout:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Prefix every record with the owning session id."""

    def process(self, msg, kwargs):
        return "[%s] %s" % (self.extra["session_id"], msg), kwargs


def session_logger(name: str, session_id: str) -> SessionLoggerAdapter:
    return SessionLoggerAdapter(logging.getLogger(name), {"session_id": session_id})
