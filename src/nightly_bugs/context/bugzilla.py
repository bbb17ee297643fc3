"""Bugzilla REST client for fetching bug metadata in batches.

One call fetches one batch: GET /rest/bug?id=1,2,3. Bugzilla returns
``{"bugs": [...]}`` and leaves out IDs the caller is not allowed to see,
so a response can be shorter than its batch without anything being wrong.

Design notes:
- Synchronous httpx, one request at a time (the pipeline owns pacing)
- An API key, when configured, is sent as X-BUGZILLA-API-KEY
- A non-2xx status aborts the run with UpstreamStatusError, even when
  Bugzilla sends a JSON error body with it. That body is never decoded as
  an empty batch, so a failed request cannot silently drop bugs
- Uses a Protocol so the pipeline can be tested without the network

Bugzilla REST docs: https://bmo.readthedocs.io/en/latest/api/core/v1/bug.html
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Protocol

import httpx
from pydantic import ValidationError

from nightly_bugs.config import PipelineConfig
from nightly_bugs.errors import MalformedResponseError, TransportError, UpstreamStatusError
from nightly_bugs.logging_config import get_logger
from nightly_bugs.schemas import BugRecord, BugzillaResponse

logger = get_logger(__name__)


def parse_bug_response(raw: bytes | str) -> BugzillaResponse:
    """Parse a /rest/bug body.

    Raises:
        MalformedResponseError: If the body is not JSON or has the wrong shape
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(f"JSON decode error: {exc}", raw) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Bugzilla response must be a JSON object, got {type(data).__name__}", raw
        )

    try:
        return BugzillaResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"Unexpected Bugzilla response: {exc}", raw) from exc


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class BugzillaClientProtocol(Protocol):
    """Interface for bug metadata lookups."""

    def fetch_batch(self, bug_ids: Sequence[int]) -> list[BugRecord]:
        """Fetch the records for one batch of bug IDs.

        Raises:
            TransportError: If Bugzilla could not be reached
            UpstreamStatusError: If Bugzilla answered with a non-2xx status
            MalformedResponseError: If the body is not valid JSON
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class BugzillaClient:
    """Real Bugzilla client using httpx.

    Usage:
        client = BugzillaClient(PipelineConfig())
        bugs = client.fetch_batch([1890001, 1890042])
    """

    SERVICE = "bugzilla.mozilla.org"

    def __init__(
        self,
        config: PipelineConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the Bugzilla client.

        Args:
            config: Pipeline configuration. Uses defaults if None.
            transport: Optional httpx transport, used by tests to fake Bugzilla.
        """
        self.config = config or PipelineConfig()
        self._transport = transport
        self._headers: dict[str, str] = {"Accept": "application/json"}
        if self.config.bugzilla_api_key:
            self._headers["X-BUGZILLA-API-KEY"] = self.config.bugzilla_api_key

    def fetch_batch(self, bug_ids: Sequence[int]) -> list[BugRecord]:
        params = {"id": ",".join(str(bug_id) for bug_id in bug_ids)}

        with httpx.Client(
            headers=self._headers,
            timeout=self.config.timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = client.get(self.config.bugzilla_url, params=params)
            except httpx.HTTPError as exc:
                logger.error("bugzilla_transport_failed", batch_size=len(bug_ids), error=str(exc))
                raise TransportError(self.SERVICE, exc) from exc

        if not resp.is_success:
            logger.error("bugzilla_bad_status", status_code=resp.status_code, body=resp.text[:500])
            raise UpstreamStatusError(self.SERVICE, resp.status_code, str(resp.request.url))

        body = parse_bug_response(resp.content)
        if body.error:
            logger.warning("bugzilla_reported_error", code=body.code, message=body.message)

        logger.debug("bug_batch_fetched", requested=len(bug_ids), returned=len(body.bugs))
        return body.bugs
