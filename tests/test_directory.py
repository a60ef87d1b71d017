"""
Unit tests for the project directory client.
"""

import json
import unittest
from pathlib import Path

import requests

from fleetclone.core.config import CloneMethod, DirectoryConfig
from fleetclone.core.exceptions import EnumerationError
from fleetclone.directory.client import DirectoryClient, list_projects
from fleetclone.directory.project import Project

BASE_URL = "https://gitlab.example.com"
PROJECTS_URL = BASE_URL + "/api/v4/projects"


def api_entry(project_id, path=None):
    path = path or f"group/project-{project_id}"
    return {
        "id": project_id,
        "name": path.rsplit("/", 1)[-1],
        "path_with_namespace": path,
        "http_url_to_repo": f"{BASE_URL}/{path}.git",
        "ssh_url_to_repo": f"git@gitlab.example.com:{path}.git",
    }


def make_response(entries, link=None, status=200, body=None):
    response = requests.Response()
    response.status_code = status
    response._content = body if body is not None else json.dumps(entries).encode()
    response.headers["Content-Type"] = "application/json"
    if link is not None:
        response.headers["Link"] = link
    response.url = PROJECTS_URL
    return response


def next_link(cursor):
    return f'<{PROJECTS_URL}?id_after={cursor}&pagination=keyset&per_page=2>; rel="next"'


class FakeSession:
    """Stands in for requests.Session, replaying canned responses."""

    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None, verify=True):
        self.calls.append({"url": url, "params": params, "headers": dict(self.headers)})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {url} {params}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class TestProject(unittest.TestCase):
    """Tests for the Project data structure."""

    def test_from_api(self):
        """Test building a project from an API entry."""
        entry = api_entry(7, "platform/tools/deployer")
        entry["statistics"] = {"repository_size": 4096}

        project = Project.from_api(entry)

        self.assertEqual(project.id, 7)
        self.assertEqual(project.path_with_namespace, "platform/tools/deployer")
        self.assertEqual(project.name, "deployer")
        self.assertEqual(project.size_estimate, 4096)

    def test_from_api_without_statistics(self):
        """Test an API entry without repository statistics."""
        project = Project.from_api(api_entry(1))
        self.assertIsNone(project.size_estimate)

    def test_from_api_missing_field(self):
        """Test that an API entry missing a field is rejected."""
        entry = api_entry(1)
        del entry["ssh_url_to_repo"]
        with self.assertRaises(KeyError):
            Project.from_api(entry)

    def test_clone_url_selection(self):
        """Test endpoint selection by clone method."""
        project = Project.from_api(api_entry(1, "a/b"))
        self.assertEqual(project.clone_url(CloneMethod.HTTPS), f"{BASE_URL}/a/b.git")
        self.assertEqual(project.clone_url(CloneMethod.SSH), "git@gitlab.example.com:a/b.git")

    def test_destination(self):
        """Test destination paths mirror the namespace."""
        project = Project.from_api(api_entry(1, "a/b/c"))
        self.assertEqual(project.destination(Path("/srv/mirror")), Path("/srv/mirror/a/b/c"))

    def test_immutable(self):
        """Test that projects cannot be modified."""
        project = Project.from_api(api_entry(1))
        with self.assertRaises(AttributeError):
            project.id = 2


class TestDirectoryClient(unittest.TestCase):
    """Tests for paginated project enumeration."""

    def _client(self, responses, **config):
        session = FakeSession(responses)
        client = DirectoryClient(DirectoryConfig(base_url=BASE_URL, **config), session=session)
        return client, session

    def test_link_header_pagination(self):
        """Test pagination that follows Link headers."""
        client, session = self._client([
            make_response([api_entry(1), api_entry(2)], link=next_link(2)),
            make_response([api_entry(3), api_entry(4)], link=next_link(4)),
            make_response([api_entry(5)], link=f'<{PROJECTS_URL}?pagination=keyset>; rel="first"'),
        ])

        projects = list(client.iter_projects())

        self.assertEqual([p.id for p in projects], [1, 2, 3, 4, 5])
        self.assertEqual(len({p.id for p in projects}), 5)
        self.assertEqual(len(session.calls), 3)
        self.assertEqual(session.calls[0]["url"], PROJECTS_URL)
        self.assertEqual(session.calls[0]["params"]["pagination"], "keyset")
        self.assertEqual(session.calls[0]["params"]["order_by"], "id")
        self.assertIn("id_after=2", session.calls[1]["url"])
        self.assertIsNone(session.calls[1]["params"])

    def test_keyset_cursor_without_link_header(self):
        """Test keyset pagination when the server sends no Link header."""
        client, session = self._client([
            make_response([api_entry(1), api_entry(2)]),
            make_response([api_entry(3), api_entry(4)]),
            make_response([api_entry(5)]),
            make_response([]),
        ])

        projects = list(client.iter_projects())

        self.assertEqual([p.id for p in projects], [1, 2, 3, 4, 5])
        self.assertNotIn("id_after", session.calls[0]["params"])
        self.assertEqual(session.calls[1]["params"]["id_after"], 2)
        self.assertEqual(session.calls[2]["params"]["id_after"], 4)
        self.assertEqual(session.calls[3]["params"]["id_after"], 5)

    def test_keyset_stops_when_cursor_repeats(self):
        """Test that a repeated cursor ends the listing."""
        client, session = self._client([
            make_response([api_entry(1)]),
            make_response([api_entry(1)]),
        ])

        projects = list(client.iter_projects())

        self.assertEqual([p.id for p in projects], [1, 1])
        self.assertEqual(len(session.calls), 2)

    def test_empty_listing(self):
        """Test an instance with no projects."""
        client, session = self._client([make_response([])])
        self.assertEqual(list(client.iter_projects()), [])

    def test_lazy_paging(self):
        """Test that pages are fetched only as projects are consumed."""
        client, session = self._client([
            make_response([api_entry(1), api_entry(2)], link=next_link(2)),
            make_response([api_entry(3)], link=""),
        ])

        iterator = client.iter_projects()
        self.assertEqual(len(session.calls), 0)

        next(iterator)
        next(iterator)
        self.assertEqual(len(session.calls), 1)

        next(iterator)
        self.assertEqual(len(session.calls), 2)

    def test_each_call_restarts(self):
        """Test that every listing starts from the first page."""
        client, session = self._client([
            make_response([api_entry(1)], link=""),
            make_response([api_entry(1)], link=""),
        ])

        self.assertEqual(len(list(client.iter_projects())), 1)
        self.assertEqual(len(list(client.iter_projects())), 1)
        self.assertEqual(session.calls[1]["url"], PROJECTS_URL)

    def test_token_attached_to_every_request(self):
        """Test that the token is sent with every page request."""
        client, session = self._client([
            make_response([api_entry(1)], link=next_link(1)),
            make_response([api_entry(2)], link=""),
        ], token="glpat-secret")

        list(client.iter_projects())

        for call in session.calls:
            self.assertEqual(call["headers"]["PRIVATE-TOKEN"], "glpat-secret")

    def test_no_token_header_when_anonymous(self):
        """Test anonymous listing without a token header."""
        client, session = self._client([make_response([], link="")])
        list(client.iter_projects())
        self.assertNotIn("PRIVATE-TOKEN", session.calls[0]["headers"])

    def test_http_error_is_fatal(self):
        """Test that an HTTP error status fails the listing."""
        client, session = self._client([
            make_response([api_entry(1)], link=next_link(1)),
            make_response([], status=500),
        ])

        iterator = client.iter_projects()
        self.assertEqual(next(iterator).id, 1)
        with self.assertRaises(EnumerationError) as ctx:
            next(iterator)
        self.assertEqual(ctx.exception.details["status"], 500)
        self.assertEqual(ctx.exception.details["page"], 2)

    def test_connection_error_is_fatal(self):
        """Test that a connection error fails the listing."""
        client, _ = self._client([requests.ConnectionError("unreachable")])
        with self.assertRaises(EnumerationError):
            list(client.iter_projects())

    def test_malformed_json_is_fatal(self):
        """Test that an undecodable body fails the listing."""
        client, _ = self._client([make_response(None, body=b"<html>")])
        with self.assertRaises(EnumerationError):
            list(client.iter_projects())

    def test_non_list_body_is_fatal(self):
        """Test that a body that is not a list fails the listing."""
        client, _ = self._client([make_response({"message": "401 Unauthorized"})])
        with self.assertRaises(EnumerationError):
            list(client.iter_projects())

    def test_malformed_entry_is_fatal(self):
        """Test that a malformed project entry fails the listing."""
        client, _ = self._client([make_response([{"id": 1}])])
        with self.assertRaises(EnumerationError):
            list(client.iter_projects())

    def test_list_projects_convenience(self):
        """Test the module-level listing helper."""
        session = FakeSession([make_response([api_entry(9)], link="")])
        projects = list(list_projects(BASE_URL, token="t", session=session))

        self.assertEqual([p.id for p in projects], [9])
        self.assertEqual(session.calls[0]["headers"]["PRIVATE-TOKEN"], "t")


if __name__ == "__main__":
    unittest.main()
