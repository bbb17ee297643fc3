"""Tests for the CLI entry point.

Run with: pytest tests/test_cli.py -v
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

import nightly_bugs.cli as cli
import nightly_bugs.pipeline as pipeline_module
from conftest import RecordingReporter
from nightly_bugs.context.bugzilla import BugzillaClient
from nightly_bugs.context.pushlog import HgPushLogClient

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def no_pipeline(monkeypatch: pytest.MonkeyPatch) -> list:
    """Replace the pipeline so any attempt to run it is recorded."""
    created: list = []

    def factory(*args, **kwargs):
        created.append((args, kwargs))
        raise AssertionError("pipeline must not run on usage errors")

    monkeypatch.setattr(cli, "NightlyBugPipeline", factory)
    return created


@pytest.fixture
def fake_services(monkeypatch: pytest.MonkeyPatch, sample_pushlog_bytes: bytes) -> dict:
    """Route both HTTP clients to an in-memory handler.

    Returns a dict with the list of seen requests, a mutable ``hg_status``
    used to simulate hg failures and a ``bugzilla`` mode ("ok",
    "unreachable" or "garbage").
    """
    state: dict = {"requests": [], "hg_status": 200, "bugzilla": "ok"}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if request.url.host == "hg.mozilla.org":
            if state["hg_status"] != 200:
                return httpx.Response(state["hg_status"], text="Internal Server Error")
            return httpx.Response(200, content=sample_pushlog_bytes)
        if state["bugzilla"] == "unreachable":
            raise httpx.ConnectError("connection refused", request=request)
        if state["bugzilla"] == "garbage":
            return httpx.Response(200, text="<html>Bugzilla is down for maintenance</html>")
        ids = request.url.params["id"].split(",")
        return httpx.Response(200, json={"bugs": [{"id": int(i)} for i in ids]})

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        pipeline_module, "HgPushLogClient", lambda config: HgPushLogClient(config, transport)
    )
    monkeypatch.setattr(
        pipeline_module, "BugzillaClient", lambda config: BugzillaClient(config, transport)
    )
    return state


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------


class TestUsageErrors:
    """Bad input exits with 1 before anything touches the network."""

    @pytest.mark.parametrize(
        "argv,message",
        [
            ([], "required"),
            (["abc"], "must be numeric"),
            (["-5"], "must be numeric"),
            (["14.5"], "must be numeric"),
            (["1"], "must be >= 2"),
            (["0"], "must be >= 2"),
            (["147", "148"], "unrecognized arguments"),
            (["147", "--bogus"], "unrecognized arguments"),
        ],
    )
    def test_exit_code_one(self, no_pipeline: list, argv: list[str], message: str) -> None:
        reporter = RecordingReporter()

        assert cli.main(argv, reporter=reporter) == 1

        err = reporter.stderr.getvalue()
        assert message in err
        assert "Usage:" in err
        assert reporter.stdout.getvalue() == ""
        assert no_pipeline == []

    def test_invalid_delay_is_a_usage_error(self, fake_services: dict, tmp_path: Path) -> None:
        reporter = RecordingReporter()
        assert cli.main(["147", "--delay", "-1", "--data-dir", str(tmp_path)], reporter) == 1
        assert "Invalid configuration" in reporter.stderr.getvalue()
        assert fake_services["requests"] == []


class TestParseReleaseNumber:
    def test_accepts_leading_zeros(self) -> None:
        assert cli.parse_release_number("0147") == 147


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


class TestRuns:
    """End-to-end runs against faked services."""

    def test_full_run(self, fake_services: dict, tmp_path: Path) -> None:
        reporter = RecordingReporter()

        code = cli.main(["147", "--data-dir", str(tmp_path), "--delay", "0"], reporter)

        assert code == 0
        assert (tmp_path / "json-pushes-nightly147.json").exists()
        output = tmp_path / "output" / "json-bugs-nightly147.json"
        assert json.loads(output.read_text()) == [{"id": 100}, {"id": 200}, {"id": 300}]
        hosts = [r.url.host for r in fake_services["requests"]]
        assert hosts == ["hg.mozilla.org", "bugzilla.mozilla.org"]

    def test_dry_run(self, fake_services: dict, tmp_path: Path) -> None:
        reporter = RecordingReporter()

        code = cli.main(["147", "-n", "--data-dir", str(tmp_path)], reporter)

        assert code == 0
        assert [r.url.host for r in fake_services["requests"]] == ["hg.mozilla.org"]
        assert not (tmp_path / "output" / "json-bugs-nightly147.json").exists()
        assert "Sample bug IDs: 100, 200, 300" in reporter.stdout.getvalue()

    def test_hg_server_error(self, fake_services: dict, tmp_path: Path) -> None:
        fake_services["hg_status"] = 500
        reporter = RecordingReporter()

        code = cli.main(["147", "--data-dir", str(tmp_path)], reporter)

        assert code == 1
        assert "Error: hg.mozilla.org returned HTTP 500" in reporter.stderr.getvalue()
        assert not (tmp_path / "json-pushes-nightly147.json").exists()
        assert not (tmp_path / "output").exists()

    def test_bugzilla_unreachable(self, fake_services: dict, tmp_path: Path) -> None:
        fake_services["bugzilla"] = "unreachable"
        reporter = RecordingReporter()

        code = cli.main(["147", "--data-dir", str(tmp_path), "--delay", "0"], reporter)

        assert code == 1
        err = reporter.stderr.getvalue()
        assert "Error: Network error while contacting bugzilla.mozilla.org" in err
        assert "connection refused" in err
        assert not (tmp_path / "output" / "json-bugs-nightly147.json").exists()

    def test_bugzilla_invalid_json(self, fake_services: dict, tmp_path: Path) -> None:
        fake_services["bugzilla"] = "garbage"
        reporter = RecordingReporter()

        code = cli.main(["147", "--data-dir", str(tmp_path), "--delay", "0"], reporter)

        assert code == 1
        err = reporter.stderr.getvalue()
        assert "JSON decode error" in err
        assert "Raw response:" in err
        assert "<html>Bugzilla is down for maintenance</html>" in err
        assert not (tmp_path / "output" / "json-bugs-nightly147.json").exists()


class TestLogLevel:
    """An unknown LOG_LEVEL is reported like any other bad setting."""

    def test_invalid_log_level(
        self, monkeypatch: pytest.MonkeyPatch, fake_services: dict, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        reporter = RecordingReporter()

        code = cli.main(["147", "--data-dir", str(tmp_path)], reporter)

        assert code == 1
        assert "Error: Invalid log level 'verbose'" in reporter.stderr.getvalue()
        assert fake_services["requests"] == []

    def test_verbose_flag_ignores_log_level(
        self, monkeypatch: pytest.MonkeyPatch, fake_services: dict, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        reporter = RecordingReporter()

        assert cli.main(["147", "-n", "-v", "--data-dir", str(tmp_path)], reporter) == 0
