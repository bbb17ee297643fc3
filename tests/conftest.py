"""Shared fixtures: push log documents and a silent reporter."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest
from rich.console import Console

from nightly_bugs.console import Reporter


def make_pushlog(*pushes: list[str]) -> dict[str, Any]:
    """Build a version 2 json-pushes body, one push per list of commit messages."""
    body: dict[str, Any] = {"lastpushid": 1000 + len(pushes), "pushes": {}}
    for push_index, messages in enumerate(pushes, start=1):
        body["pushes"][str(1000 + push_index)] = {
            "user": "someone@mozilla.com",
            "date": 1_730_000_000 + push_index,
            "changesets": [
                {
                    "node": f"{push_index:04d}{cs_index:036d}",
                    "author": "Dev <dev@mozilla.com>",
                    "desc": message,
                }
                for cs_index, message in enumerate(messages)
            ],
        }
    return body


@pytest.fixture
def sample_pushlog() -> dict[str, Any]:
    """Three pushes referencing bugs 100, 200, 100 and 300."""
    return make_pushlog(
        ["Bug 100 - Fix the thing r=reviewer"],
        ["Bug 200 - Add the other thing r=reviewer", "Bug 100 - Follow-up r=reviewer"],
        ["Bug 300: Update docs. r=reviewer DONTBUILD"],
    )


@pytest.fixture
def sample_pushlog_bytes(sample_pushlog: dict[str, Any]) -> bytes:
    return json.dumps(sample_pushlog).encode()


class RecordingReporter(Reporter):
    """Reporter writing into in-memory buffers instead of the terminal."""

    def __init__(self) -> None:
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()
        super().__init__(
            out=Console(file=self.stdout, highlight=False, markup=False, soft_wrap=True),
            err=Console(file=self.stderr, highlight=False, markup=False, soft_wrap=True),
        )


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
