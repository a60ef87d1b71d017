"""
Paginated client for the remote project directory.

Enumerates every project visible to the caller through the GitLab
projects API, following keyset pagination one page at a time.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests

from fleetclone.core.config import DirectoryConfig
from fleetclone.core.exceptions import EnumerationError
from fleetclone.directory.project import Project

logger = logging.getLogger(__name__)


class DirectoryClient:
    """
    Lists projects from a GitLab instance.

    Pages are requested lazily: a new request is only issued once every
    project of the previous page has been consumed, so at most one page
    is held in memory.
    """

    API_PATH = "/api/v4/projects"

    def __init__(self, config: DirectoryConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session if session is not None else requests.Session()
        if config.token:
            self.session.headers["PRIVATE-TOKEN"] = config.token

    @property
    def projects_url(self) -> str:
        return self.config.base_url.rstrip("/") + self.API_PATH

    def _base_params(self) -> Dict[str, Any]:
        return {
            "all_available": "true",
            "order_by": "id",
            "sort": "asc",
            "pagination": "keyset",
            "per_page": self.config.per_page,
            "statistics": "false",
            "with_custom_attributes": "false",
        }

    def iter_projects(self) -> Iterator[Project]:
        """
        Yield every project visible to the configured credential.

        Each call starts again from the first page.

        Raises:
            EnumerationError: If any page cannot be fetched or parsed.
        """
        url = self.projects_url
        params: Optional[Dict[str, Any]] = self._base_params()
        page_number = 0
        cursor = None

        while True:
            page_number += 1
            response = self._get(url, params, page_number)
            entries = self._decode(response, url, page_number)
            projects = self._parse_page(entries, url, page_number)
            logger.debug(f"Fetched page {page_number}: {len(projects)} projects")

            for project in projects:
                yield project

            if response.headers.get("Link") is not None:
                next_link = response.links.get("next")
                if not next_link:
                    break
                url, params = next_link["url"], None
                continue

            # No Link header: fall back to the id_after keyset cursor
            if not projects:
                break
            new_cursor = projects[-1].id
            if new_cursor == cursor:
                break
            cursor = new_cursor
            url = self.projects_url
            params = dict(self._base_params(), id_after=cursor)

        logger.debug(f"Listing exhausted after {page_number} pages")

    def _get(self, url: str, params: Optional[Dict[str, Any]], page_number: int) -> requests.Response:
        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.config.request_timeout,
                verify=self.config.verify_tls,
            )
        except requests.RequestException as e:
            raise EnumerationError(
                f"Failed to fetch project page {page_number}: {e}",
                details={"url": url, "page": page_number},
            ) from e

        if response.status_code != 200:
            raise EnumerationError(
                f"Project listing returned HTTP {response.status_code} on page {page_number}",
                details={"url": url, "page": page_number, "status": response.status_code},
            )
        return response

    def _decode(self, response: requests.Response, url: str, page_number: int) -> List[Any]:
        try:
            entries = response.json()
        except ValueError as e:
            raise EnumerationError(
                f"Project page {page_number} is not valid JSON",
                details={"url": url, "page": page_number},
            ) from e

        if not isinstance(entries, list):
            raise EnumerationError(
                f"Project page {page_number} is not a list",
                details={"url": url, "page": page_number},
            )
        return entries

    def _parse_page(self, entries: List[Any], url: str, page_number: int) -> List[Project]:
        try:
            return [Project.from_api(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as e:
            raise EnumerationError(
                f"Malformed project entry on page {page_number}: {e}",
                details={"url": url, "page": page_number},
            ) from e


def list_projects(
    base_url: str,
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> Iterator[Project]:
    """
    Convenience function to enumerate projects with default settings.

    Args:
        base_url: Base URL of the hosting service.
        token: Optional API token.
        session: Optional requests session to reuse.

    Returns:
        Lazy iterator over all visible projects.
    """
    config = DirectoryConfig(base_url=base_url, token=token)
    return DirectoryClient(config, session=session).iter_projects()
