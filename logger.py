"""Logging configuration for Assetree.

Sets up logging to both file (with date-based naming) and console.
"""

import logging
from datetime import date
from config import Config

LOGGER_NAME = "assetree"


def setup_logging(config: Config) -> logging.Logger:
    """Set up application logging with file and console handlers.

    Args:
        config: Application configuration containing log settings.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Calling setup twice must not duplicate output
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(message)s")

    log_file_path = config.log_dir / f"assetree-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """Get the application logger, or one of its children.

    Args:
        name: Optional child name, e.g. "tools.history".

    Returns:
        The assetree logger (or child) instance.
    """
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
