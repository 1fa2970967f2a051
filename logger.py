import logging
import sys
from pathlib import Path
from typing import Optional

import config


def setup_logger(
    name: str = "brainhints",
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        name: Logger name; module loggers are children of it
        log_file: Optional path to a log file (console only when unset)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    log_file = log_file or config.LOG_FILE
    level = (level or config.LOG_LEVEL).upper()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Child logger of the application logger, e.g. brainhints.comments"""
    return logging.getLogger(f"brainhints.{module_name}")


logger = logging.getLogger("brainhints")
