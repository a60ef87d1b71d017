"""
Bounded worker pool driving concurrent clone tasks.
"""

from fleetclone.scheduling.scheduler import Scheduler

__all__ = ["Scheduler"]
