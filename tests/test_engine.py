"""
End-to-end tests for the fleet clone engine and command-line interface.
"""

import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests
from click.testing import CliRunner

from fleetclone.cli import cli
from fleetclone.cloning.git_handler import TransferStats
from fleetclone.cloning.outcome import ErrorKind
from fleetclone.core.config import (
    CloneConfig,
    Config,
    DirectoryConfig,
    FleetConfig,
    SchedulerConfig,
)
from fleetclone.core.exceptions import ConfigurationError, EnumerationError, TransportError
from fleetclone.engine import FleetCloneEngine

BASE_URL = "https://gitlab.example.com"
PROJECTS_URL = BASE_URL + "/api/v4/projects"


def api_entry(project_id, path):
    return {
        "id": project_id,
        "name": path.rsplit("/", 1)[-1],
        "path_with_namespace": path,
        "http_url_to_repo": f"{BASE_URL}/{path}.git",
        "ssh_url_to_repo": f"git@gitlab.example.com:{path}.git",
    }


def make_response(entries, link="", status=200):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(entries).encode()
    response.headers["Link"] = link
    response.url = PROJECTS_URL
    return response


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)

    def get(self, url, params=None, timeout=None, verify=True):
        return self.responses.pop(0)


class StubTransport:
    def __init__(self, failures=None):
        self.failures = failures or {}

    def clone(self, url, destination, progress=None):
        for fragment, kind in self.failures.items():
            if fragment in url:
                raise TransportError("fatal: repository not found", kind=kind)
        Path(destination, ".git").mkdir(parents=True)
        stats = TransferStats(received_bytes=1024, received_objects=8, total_objects=8)
        if progress:
            progress(stats)
        return stats


class TestFleetCloneEngine(unittest.TestCase):
    """Tests for FleetCloneEngine."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _config(self, workers=2):
        return FleetConfig(
            directory=DirectoryConfig(base_url=BASE_URL),
            clone=CloneConfig(root_dir=str(self.tmpdir)),
            scheduler=SchedulerConfig(worker_count=workers),
        )

    def test_three_projects_one_not_found(self):
        """Test a full run where one of three projects is missing."""
        session = FakeSession([
            make_response(
                [api_entry(1, "g/one"), api_entry(2, "g/two")],
                link=f'<{PROJECTS_URL}?id_after=2>; rel="next"',
            ),
            make_response([api_entry(3, "g/three")]),
        ])
        lines = []
        engine = FleetCloneEngine(
            self._config(workers=2),
            session=session,
            transport=StubTransport(failures={"g/two": ErrorKind.NOT_FOUND}),
            echo=lines.append,
            color=False,
        )

        report = engine.run()

        self.assertEqual(report.total, 3)
        self.assertEqual(report.succeeded, 2)
        self.assertEqual(report.failed, 1)
        self.assertEqual(report.failures_by_kind, {"not found": 1})
        self.assertEqual(report.total_bytes, 2048)
        self.assertTrue(report.finished)

        status_lines = lines[:3]
        self.assertIn("FAIL g/two [not found]: fatal: repository not found", status_lines)
        self.assertIn("Cloned 2/3 projects", lines[-1])
        self.assertTrue((self.tmpdir / "g" / "one" / ".git").is_dir())
        self.assertFalse((self.tmpdir / "g" / "two" / ".git").exists())

    def test_duplicate_paths_across_pages(self):
        """Test that duplicate paths on different pages collide."""
        session = FakeSession([
            make_response(
                [api_entry(1, "g/dup")],
                link=f'<{PROJECTS_URL}?id_after=1>; rel="next"',
            ),
            make_response([api_entry(2, "g/dup")]),
        ])
        engine = FleetCloneEngine(
            self._config(workers=1), session=session, transport=StubTransport(),
            echo=lambda line: None,
        )

        report = engine.run()

        self.assertEqual(report.succeeded, 1)
        self.assertEqual(report.failures_by_kind, {"path collision": 1})

    def test_enumeration_failure_is_fatal(self):
        """Test that a failed page ends the run after reporting finished clones."""
        session = FakeSession([
            make_response([api_entry(1, "g/one")], link=f'<{PROJECTS_URL}?id_after=1>; rel="next"'),
            make_response([], status=502),
        ])
        lines = []
        engine = FleetCloneEngine(
            self._config(), session=session, transport=StubTransport(), echo=lines.append,
            color=False,
        )

        with self.assertRaises(EnumerationError):
            engine.run()

        self.assertTrue(any(line.startswith("OK   g/one") for line in lines))
        self.assertIn("Cloned 1/1 projects", lines[-1])

    def test_invalid_configuration(self):
        """Test that an invalid configuration is rejected up front."""
        config = self._config()
        config.clone.clone_method = "ftp"
        with self.assertRaises(ConfigurationError):
            FleetCloneEngine(config, session=FakeSession([]), transport=StubTransport())

    def test_config_is_required(self):
        """Test that the engine is only built from an explicit configuration."""
        Config.reset()
        with mock.patch.object(Config, "get") as get:
            with self.assertRaises(TypeError):
                FleetCloneEngine(session=FakeSession([]), transport=StubTransport())
        get.assert_not_called()

    def test_list_projects(self):
        """Test listing projects without cloning."""
        session = FakeSession([make_response([api_entry(1, "g/one"), api_entry(2, "g/two")])])
        engine = FleetCloneEngine(self._config(), session=session, transport=StubTransport())

        self.assertEqual(
            [p.path_with_namespace for p in engine.list_projects()], ["g/one", "g/two"]
        )


class TestCli(unittest.TestCase):
    """Tests for the command-line glue."""

    def setUp(self):
        Config.reset()
        self.tmpdir = tempfile.mkdtemp()
        self.runner = CliRunner()
        self.env = {
            "GITLAB_URL": None,
            "GITLAB_TOKEN": None,
            "FLEETCLONE_CLONE_METHOD": None,
            "FLEETCLONE_ROOT_DIR": None,
            "FLEETCLONE_WORKERS": None,
            "FLEETCLONE_VERBOSE": None,
        }

    def tearDown(self):
        shutil.rmtree(self.tmpdir)
        Config.reset()
        logging.getLogger().handlers.clear()

    def test_init_writes_config(self):
        """Test that init writes a configuration file."""
        output = os.path.join(self.tmpdir, "config.json")
        result = self.runner.invoke(cli, ["init", "-o", output], env=self.env, obj={})

        self.assertEqual(result.exit_code, 0, result.output)
        with open(output) as f:
            data = json.load(f)
        self.assertEqual(data["clone"]["clone_method"], "https")

    def test_unknown_clone_method_rejected(self):
        """Test that an unknown clone method is rejected."""
        result = self.runner.invoke(cli, ["clone", "--method", "ftp"], env=self.env, obj={})
        self.assertNotEqual(result.exit_code, 0)

    def test_invalid_url_rejected(self):
        """Test that a malformed base URL is rejected."""
        result = self.runner.invoke(
            cli, ["list", "--url", "gitlab.example.com"], env=self.env, obj={}
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_list_command(self):
        """Test the list command output."""
        session = FakeSession([make_response([api_entry(5, "g/five")])])
        with mock.patch("fleetclone.directory.client.requests.Session", return_value=session):
            result = self.runner.invoke(
                cli, ["list", "--url", BASE_URL, "--token", "abc"], env=self.env, obj={}
            )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("5\tg/five", result.output)
        self.assertEqual(session.headers["PRIVATE-TOKEN"], "abc")

    def test_list_enumeration_failure_exits_1(self):
        """Test that a listing failure exits with status 1."""
        session = FakeSession([make_response([], status=401)])
        with mock.patch("fleetclone.directory.client.requests.Session", return_value=session):
            result = self.runner.invoke(cli, ["list", "--url", BASE_URL], env=self.env, obj={})

        self.assertEqual(result.exit_code, 1)
        self.assertIn("HTTP 401", result.output)


if __name__ == "__main__":
    unittest.main()
