"""
Project data structures returned by the directory listing.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fleetclone.core.config import CloneMethod


@dataclass(frozen=True)
class Project:
    """One remote repository entry from the listing."""

    id: int
    path_with_namespace: str
    name: str
    http_url_to_repo: str
    ssh_url_to_repo: str
    size_estimate: Optional[int] = None

    @classmethod
    def from_api(cls, entry: Dict[str, Any]) -> "Project":
        """
        Build a Project from one entry of the projects API.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If the entry is not a mapping.
        """
        if not isinstance(entry, dict):
            raise TypeError(f"Project entry must be an object, got {type(entry).__name__}")

        statistics = entry.get("statistics") or {}
        size = statistics.get("repository_size")

        return cls(
            id=int(entry["id"]),
            path_with_namespace=entry["path_with_namespace"],
            name=entry.get("name") or entry["path_with_namespace"].rsplit("/", 1)[-1],
            http_url_to_repo=entry["http_url_to_repo"],
            ssh_url_to_repo=entry["ssh_url_to_repo"],
            size_estimate=int(size) if size is not None else None,
        )

    def clone_url(self, method: CloneMethod) -> str:
        """Select the clone endpoint for the given protocol."""
        if method == CloneMethod.SSH:
            return self.ssh_url_to_repo
        return self.http_url_to_repo

    def destination(self, root_dir: Path) -> Path:
        """Local path of this project under root_dir."""
        return Path(root_dir).joinpath(*self.path_with_namespace.split("/"))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "path_with_namespace": self.path_with_namespace,
            "name": self.name,
            "http_url_to_repo": self.http_url_to_repo,
            "ssh_url_to_repo": self.ssh_url_to_repo,
            "size_estimate": self.size_estimate,
        }
