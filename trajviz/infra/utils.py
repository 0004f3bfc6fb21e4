"""
Utility functions shared across trajviz.

This module provides:
- Human-readable duration formatting for HUDs and status bars
- Timing helper for long-running scenario runs
- File I/O helpers (directories, hashing, JSON encoding of numpy values)
"""

import hashlib
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import numpy as np

logger = logging.getLogger(__name__)

# (suffix, seconds) from largest to smallest; suffixes follow humantime
_DURATION_UNITS = (
    ("day", 86400.0),
    ("h", 3600.0),
    ("m", 60.0),
    ("s", 1.0),
    ("ms", 1e-3),
)

def format_duration(seconds: float, precision: Optional[int] = None) -> str:
    """
    Format a duration as space-separated units, e.g. ``"1day 2h 3m 4s"``.

    Args:
        seconds: Duration in seconds (non-negative)
        precision: Keep only the first ``precision`` components

    Returns:
        Formatted duration string
    """
    if seconds is None or math.isnan(seconds):
        raise ValueError("Duration must be a number")
    if math.isinf(seconds):
        return "inf"
    if seconds < 0:
        raise ValueError(f"Duration must be non-negative, got {seconds}")

    remaining = int(round(seconds * 1000))  # milliseconds
    parts = []
    for suffix, unit in _DURATION_UNITS:
        unit_ms = int(round(unit * 1000))
        count, remaining = divmod(remaining, unit_ms)
        if count:
            if suffix == "day" and count > 1:
                suffix = "days"
            parts.append(f"{count}{suffix}")

    if not parts:
        return "0s"
    if precision is not None:
        parts = parts[:max(precision, 1)]
    return " ".join(parts)

class Timer:
    """Simple context manager for timing operations."""

    def __init__(self, name: str = "Operation"):
        self.name = name
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logger.info("%s completed in %s", self.name, format_duration(self.elapsed, 2))

    @property
    def elapsed(self) -> float:
        """Get elapsed time in seconds."""
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure directory exists, create if necessary.

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path

def get_file_hash(filepath: Union[str, Path]) -> str:
    """
    Compute SHA256 hash of file.

    Args:
        filepath: Path to file

    Returns:
        Hex string of file hash
    """
    hash_sha256 = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_sha256.update(chunk)
    return hash_sha256.hexdigest()

def json_serializer(obj):
    """JSON serializer for numpy arrays and other objects."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, datetime):
        return obj.isoformat()
    else:
        return str(obj)
