import logging

from vp_authorizer.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"


def create_logger(name: str, level=None) -> logging.Logger:
    """Get configured logger instance"""
    logger = logging.getLogger(f"vp_authorizer.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level or LOG_LEVEL)
    return logger
