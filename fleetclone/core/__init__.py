"""
Core module containing configuration and the exception hierarchy.
"""

from fleetclone.core.config import (
    CloneConfig,
    CloneMethod,
    Config,
    DirectoryConfig,
    FleetConfig,
    SchedulerConfig,
)
from fleetclone.core.exceptions import (
    FleetCloneError,
    ConfigurationError,
    EnumerationError,
    TransportError,
)

__all__ = [
    "CloneConfig",
    "CloneMethod",
    "Config",
    "DirectoryConfig",
    "FleetConfig",
    "SchedulerConfig",
    "FleetCloneError",
    "ConfigurationError",
    "EnumerationError",
    "TransportError",
]
