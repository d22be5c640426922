"""
Centralized logging configuration with colored output
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import colorlog


LOGS_DIR = Path("logs")
PACKAGE_LOGGER = "polydns"


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True
) -> logging.Logger:
    """
    Set up a logger with colored console output and optional file logging.
    
    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (saved in logs/ directory)
        console: Whether to output to console
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    
    # Prevent duplicate handlers
    if logger.handlers:
        return logger
    
    if console:
        console_handler = colorlog.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        
        console_formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(levelname)-8s%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s",
            reset=True,
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            },
            style='%'
        )
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
    
    if log_file:
        add_file_handler(logger, log_file)
    
    return logger


def add_file_handler(logger: logging.Logger, log_file: str) -> logging.Handler:
    """
    Attach a plain-text file handler writing to logs/<log_file>.
    
    The logs/ directory is created on demand.
    """
    LOGS_DIR.mkdir(exist_ok=True)
    file_handler = logging.FileHandler(LOGS_DIR / log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)  # Always log everything to file
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(file_handler)
    return file_handler


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """
    Get or create a logger with default configuration.
    
    Loggers under the "polydns" namespace share the package logger's
    handlers and level, so the CLI can retune all of them with set_level().
    
    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level
        
    Returns:
        Configured logger instance
    """
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        if not logging.getLogger(PACKAGE_LOGGER).handlers:
            setup_logger(PACKAGE_LOGGER, level=level)
        return logging.getLogger(name)
    
    return setup_logger(name=name, level=level)


def set_level(level: str, log_file: Optional[str] = None):
    """
    Apply a level to the package logger and, optionally, start file logging.
    
    Args:
        level: Logging level name
        log_file: Optional file name under logs/
    """
    root = setup_logger(PACKAGE_LOGGER, level=level)
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(getattr(logging, level.upper()))
    if log_file:
        add_file_handler(root, log_file)
