"""
Input validation utilities.

Provides validation functions for the base URL and clone root given
on the command line.
"""

import os
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse


def validate_url(url: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a hosting service base URL.

    Args:
        url: URL to validate.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not url:
        return False, "URL cannot be empty"

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False, f"URL must use http or https: {url}"

    if not parsed.netloc:
        return False, f"URL has no host: {url}"

    return True, None


def validate_root_dir(path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate the directory clones are written to.

    The directory may not exist yet; its closest existing ancestor
    must then be a writable directory.

    Args:
        path: Path to validate.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not path:
        return False, "Path cannot be empty"

    path_obj = Path(path).expanduser().resolve()

    if path_obj.exists() and not path_obj.is_dir():
        return False, f"Path is not a directory: {path}"

    existing = path_obj
    while not existing.exists():
        existing = existing.parent

    if not os.access(existing, os.W_OK):
        return False, f"Path is not writable: {existing}"

    return True, None
