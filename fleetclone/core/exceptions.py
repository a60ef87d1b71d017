"""
Custom exceptions for fleetclone.

Provides a hierarchy of exceptions for the different stages of a
fleet run, separating fatal failures (configuration, enumeration)
from per-project transport failures.
"""


class FleetCloneError(Exception):
    """Base exception for all fleetclone errors."""

    def __init__(self, message: str, stage: str = None, details: dict = None):
        super().__init__(message)
        self.stage = stage
        self.details = details or {}

    def __str__(self):
        base_msg = super().__str__()
        if self.stage:
            return f"[{self.stage}] {base_msg}"
        return base_msg


class ConfigurationError(FleetCloneError):
    """Raised when the run configuration is invalid."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Configuration", details=details)


class EnumerationError(FleetCloneError):
    """Raised when a page of the project listing cannot be fetched."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Enumeration", details=details)


class TransportError(FleetCloneError):
    """
    Raised by the transport when a single clone fails.

    Never escapes a clone task: it is converted into a failed outcome.
    """

    def __init__(self, message: str, kind=None, stderr: str = "", details: dict = None):
        super().__init__(message, stage="Transport", details=details)
        self.kind = kind
        self.stderr = stderr
