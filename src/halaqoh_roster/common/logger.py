'''
universal logger
'''
import logging
import sys

from .config import settings

def setup_logger(name: str = 'HR-backend', level: str | None = None) -> logging.Logger:
    """
    Builds the application logger: one stdout handler, level taken from
    settings.LOG_LEVEL unless given. Calling it again reuses the handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        # module name first so a line can be traced back to its service
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(module)s - %(levelname)s\n - %(message)s'
        ))
        logger.addHandler(handler)

    return logger

# Create a single logger instance to be imported by other modules
log = setup_logger()
