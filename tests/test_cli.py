"""Tests for the promisemap command-line entry point."""

from __future__ import annotations

import json
import logging

import pytest

from promisemap import cli
from tests.conftest import make_source


@pytest.fixture(autouse=True)
def _fast_source(mocker):
    """Keep CLI runs quick by shortening the mock latency."""
    mocker.patch("promisemap.harness.ProfileSource", side_effect=make_source)
    mocker.patch("promisemap.cli.ProfileSource", side_effect=make_source)
    yield
    cli.logger.setLevel(logging.INFO)


class TestParseArgs:
    def test_defaults(self):
        args = cli.parse_args([])
        assert args.requests == 50
        assert args.key == "accountData"
        assert args.threaded is False
        assert args.as_json is False

    def test_rejects_non_positive_requests(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--requests", "0"])


class TestMain:
    def test_banner_output(self, capsys):
        assert cli.main(["--requests", "5"]) == 0
        out = capsys.readouterr().out

        assert "Using an ordinary Map" in out
        assert "Using a PromiseMap" in out
        assert "cache misses: 5" in out
        assert "cache misses: 1" in out
        assert "coalesced: no" in out

    def test_json_output(self, capsys):
        cli.main(["-n", "7", "--key", "profile", "--json", "--threaded"])
        reports = json.loads(capsys.readouterr().out)

        assert [r["invocations"] for r in reports] == [7, 1, 1]
        assert all(r["requests"] == 7 for r in reports)
        assert reports[1]["data"]["username"] == "ahmed"
        assert [r["coalesced"] for r in reports] == [False, True, True]

    def test_verbose_sets_debug(self, capsys):
        cli.main(["-n", "1", "-v"])
        capsys.readouterr()
        assert cli.logger.level == logging.DEBUG
