"""Pydantic models for the data that flows through the pipeline.

- ReleaseWindow: the two Nightly tags bounding a release cycle
- PushLogDocument / Push / Changeset: the hg json-pushes payload
- BugzillaResponse: the body returned by Bugzilla's /rest/bug endpoint

Bug records themselves stay plain dicts. The pipeline never interprets
their fields, it only copies them into the output file.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

BugRecord = dict[str, Any]


def nightly_tag(release_number: int) -> str:
    """Tag set on mozilla-central when a Nightly cycle ends."""
    return f"FIREFOX_NIGHTLY_{release_number}_END"


# ---------------------------------------------------------------------------
# Release window
# ---------------------------------------------------------------------------


class ReleaseWindow(BaseModel):
    """The revision range covered by one Nightly release.

    Attributes:
        release_number: Nightly version being extracted (e.g., 147)
        previous_release_number: The version before it
        from_tag: End tag of the previous cycle
        to_tag: End tag of this cycle
    """

    model_config = ConfigDict(frozen=True)

    release_number: int = Field(..., ge=2, description="Nightly release number")
    previous_release_number: int = Field(..., ge=1)
    from_tag: str
    to_tag: str

    @model_validator(mode="after")
    def check_tags_match_numbers(self) -> ReleaseWindow:
        if self.previous_release_number != self.release_number - 1:
            raise ValueError("previous_release_number must be release_number - 1")
        if self.from_tag != nightly_tag(self.previous_release_number):
            raise ValueError(f"from_tag does not match release {self.previous_release_number}")
        if self.to_tag != nightly_tag(self.release_number):
            raise ValueError(f"to_tag does not match release {self.release_number}")
        return self


# ---------------------------------------------------------------------------
# hg push log
# ---------------------------------------------------------------------------


class Changeset(BaseModel):
    """One changeset inside a push. Only ``desc`` is needed for extraction."""

    node: str = ""
    desc: str
    author: str = ""


class Push(BaseModel):
    """A single push: who pushed, when, and which changesets it carried."""

    user: str = ""
    date: Any = None
    changesets: list[Any] = Field(default_factory=list)


class PushLogDocument(BaseModel):
    """A json-pushes document.

    ``pushes`` keeps the raw per-push entries in document order. Entries
    are validated one at a time during extraction so a single broken push
    doesn't invalidate the rest.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_push_id: int | None = Field(None, alias="lastpushid")
    pushes: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Bugzilla
# ---------------------------------------------------------------------------


class BugzillaResponse(BaseModel):
    """Body of a GET /rest/bug response.

    Bugzilla silently drops IDs the caller may not see, so ``bugs`` can be
    shorter than the request. On failure it answers with ``error: true``
    plus a message and a numeric code.
    """

    bugs: list[BugRecord] = Field(default_factory=list)
    error: bool = False
    message: str | None = None
    code: int | None = None
