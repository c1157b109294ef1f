# orgstruct/core/logging.py
"""
Process-wide logging setup.

``local`` writes plain text at DEBUG, ``dev`` writes JSON at DEBUG and
``prod`` writes JSON at INFO. Anything else falls back to plain text at INFO.
"""
import logging
import sys

from pythonjsonlogger import jsonlogger

ENV_LOCAL = "local"
ENV_DEV = "dev"
ENV_PROD = "prod"

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _formatter_for(env: str) -> logging.Formatter:
    if env in (ENV_DEV, ENV_PROD):
        return jsonlogger.JsonFormatter(JSON_FORMAT, json_ensure_ascii=False)
    return logging.Formatter(TEXT_FORMAT)


def _level_for(env: str) -> int:
    if env in (ENV_LOCAL, ENV_DEV):
        return logging.DEBUG
    return logging.INFO


def setup_logging(env: str) -> logging.Logger:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter_for(env))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level_for(env))

    # SQL echo is too chatty outside local debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger = logging.getLogger("orgstruct")
    logger.info("logging initialized", extra={"env": env})
    return logger
