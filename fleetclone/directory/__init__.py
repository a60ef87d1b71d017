"""
Remote project directory: listing and project metadata.
"""

from fleetclone.directory.project import Project
from fleetclone.directory.client import DirectoryClient, list_projects

__all__ = [
    "Project",
    "DirectoryClient",
    "list_projects",
]
