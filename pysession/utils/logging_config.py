import logging
import sys
import os
from typing import Optional


def setup_logging(name: str = "pysession", log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up the package-wide logging configuration.

    Args:
        name (str): The name of the logger.
        log_level (str): Logging level (DEBUG, INFO, WARNING, ERROR).
            Falls back to PYSESSION_LOG_LEVEL, then INFO.

    Returns:
        logging.Logger: Configured logger instance.
    """
    log_level = log_level or os.getenv("PYSESSION_LOG_LEVEL", "INFO")

    logger = logging.getLogger(name)
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    if not logger.handlers:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Console Handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # File Handler, only when a log directory is configured
        log_dir = os.getenv("PYSESSION_LOG_DIR")
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(log_dir, f"{name}.log"), encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
