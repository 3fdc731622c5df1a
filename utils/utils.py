"""
Utility functions for the Stryktipset Pool
"""

import logging
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import hashlib

from config import LOG_LEVEL, LOG_FORMAT, LOGS_DIR


def setup_logging(name: str) -> logging.Logger:
    """
    Set up logging for a module

    Args:
        name: Name of the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    # Streamlit reruns modules, don't stack handlers
    if logger.handlers:
        return logger

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(LOG_FORMAT)
    console_handler.setFormatter(formatter)

    # File handler
    log_file = LOGS_DIR / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(LOG_LEVEL)
    file_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    return logger


def hash_client_id(client_id: str) -> str:
    """
    Hash a client identifier so submissions can be tracked without storing it

    Args:
        client_id: Browser/CLI identifier supplied by the submitter

    Returns:
        SHA-256 hex digest
    """
    return hashlib.sha256(client_id.encode("utf-8")).hexdigest()


def generate_cache_key(endpoint: str, params: Dict[str, Any]) -> str:
    """
    Generate a cache key from endpoint and parameters

    Args:
        endpoint: API endpoint
        params: Request parameters

    Returns:
        MD5 hash to use as cache key
    """
    cache_string = f"{endpoint}_{json.dumps(params, sort_keys=True)}"
    return hashlib.md5(cache_string.encode()).hexdigest()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def datetime_to_string(value: datetime) -> str:
    """Convert datetime to ISO 8601 string for storage"""
    return value.isoformat()


def string_to_datetime(value: str) -> datetime:
    """Convert ISO 8601 string back to datetime"""
    return datetime.fromisoformat(value)


def iso_week_number(timestamp: str) -> Optional[int]:
    """
    Get the ISO week number of an ISO 8601 timestamp

    Args:
        timestamp: e.g. '2025-01-18T15:59:00+01:00'

    Returns:
        ISO week number, or None if the timestamp can't be parsed
    """
    try:
        return string_to_datetime(timestamp).isocalendar()[1]
    except (TypeError, ValueError):
        return None

