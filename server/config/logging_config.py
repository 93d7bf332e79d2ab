import logging
import sys
from logging.handlers import RotatingFileHandler

from config.config import LOG_LEVEL, LOG_FILE


def setup_logging():
    """Configure the root logger once for the whole application"""
    logger = logging.getLogger()
    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if LOG_FILE:
        try:
            file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10485760, backupCount=5)
        except OSError as e:
            logger.warning(f"Could not open log file {LOG_FILE}: {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    # Silence noisy libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('pymongo').setLevel(logging.WARNING)
