"""Centralized logging configuration."""
import logging
import os
import sys
from typing import Optional


_logging_configured = False

# Chatty third-party loggers kept at WARNING unless explicitly lowered
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def _level_from_env(default: int) -> int:
    """Resolve log level from S3_CONTAINER_LOG_LEVEL (name or number)."""
    value = os.getenv("S3_CONTAINER_LOG_LEVEL")
    if not value:
        return default
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    level: Optional[int] = None,
    format_string: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure logging for the adapter.
    
    Args:
        level: Logging level. If None, read from S3_CONTAINER_LOG_LEVEL (default INFO).
        format_string: Custom format string. If None, uses default.
        datefmt: Date format string. If None, uses default.
        force: If True, reconfigure even if already configured.
    """
    global _logging_configured
    
    if _logging_configured and not force:
        return
    
    if level is None:
        level = _level_from_env(logging.INFO)
    
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    if datefmt is None:
        datefmt = "%Y-%m-%d %H:%M:%S"
    
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=datefmt,
        stream=sys.stdout,
        force=force,
    )
    
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    
    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    
    Args:
        name: Logger name (typically __name__)
    
    Returns:
        Logger instance
    """
    if not _logging_configured:
        setup_logging()
    
    return logging.getLogger(name)
