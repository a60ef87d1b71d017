"""
Utility functions and helpers.

Provides common utilities used across the codebase.
"""

from fleetclone.utils.logging_config import setup_logging
from fleetclone.utils.validation import validate_root_dir, validate_url

__all__ = [
    "setup_logging",
    "validate_root_dir",
    "validate_url",
]
