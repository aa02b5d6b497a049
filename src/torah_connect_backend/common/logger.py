'''
Application logger. Every module logs through the one 'TC-backend' logger.
'''
import logging
import sys

from .config import settings

LOGGER_NAME = 'TC-backend'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'


def setup_logger(level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Configures the application logger. Safe to call more than once:
    the stdout handler is only attached the first time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger

log = setup_logger()
