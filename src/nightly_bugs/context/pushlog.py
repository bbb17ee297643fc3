"""hg push log client for fetching the changesets of a Nightly cycle.

This module fetches the json-pushes document for a tag range from
hg.mozilla.org and saves the raw bytes next to the other run artifacts,
so the extraction step can be replayed or inspected later.

Design notes:
- Uses a synchronous httpx client; the pipeline is strictly sequential
- Follows redirects (hg.mozilla.org redirects some repository paths)
- Checks the status before writing, so a failed fetch leaves no file
- Uses a Protocol so the pipeline can be driven by a fake in tests

json-pushes docs: https://mozilla-version-control-tools.readthedocs.io/en/latest/hgmo/pushlog.html
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from nightly_bugs.config import PipelineConfig
from nightly_bugs.errors import MalformedDocumentError, TransportError, UpstreamStatusError
from nightly_bugs.logging_config import get_logger
from nightly_bugs.schemas import PushLogDocument, ReleaseWindow

logger = get_logger(__name__)


def pushlog_filename(release_number: int) -> str:
    return f"json-pushes-nightly{release_number}.json"


def build_pushlog_url(base_url: str, from_tag: str, to_tag: str) -> str:
    """Build the json-pushes query for the full range between two tags.

    ``full`` is a valueless flag on hg.mozilla.org, so it is appended as-is
    instead of going through urlencode.
    """
    query = urlencode({"fromchange": from_tag, "tochange": to_tag})
    return f"{base_url}?{query}&full&version=2"


def parse_pushlog(raw: bytes | str) -> PushLogDocument:
    """Parse a json-pushes body into a PushLogDocument.

    Accepts version 2 documents (``{"lastpushid": ..., "pushes": {...}}``)
    and legacy version 1 documents, where the top level is the push mapping.

    Raises:
        MalformedDocumentError: If the body is not JSON or not a mapping
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(f"Push log is not valid JSON: {exc}", raw) from exc

    if not isinstance(data, dict):
        raise MalformedDocumentError(
            f"Push log must be a JSON object, got {type(data).__name__}", raw
        )

    if "pushes" not in data:
        data = {"pushes": data}

    try:
        return PushLogDocument.model_validate(data)
    except ValidationError as exc:
        raise MalformedDocumentError(f"Unexpected push log layout: {exc}", raw) from exc


def load_pushlog(path: str | Path) -> PushLogDocument:
    """Re-read a push log previously saved by HgPushLogClient."""
    return parse_pushlog(Path(path).read_bytes())


@dataclass
class PushLogFetchResult:
    """What a push log fetch produced.

    Attributes:
        document: The parsed push log
        path: Where the raw response was saved
        url: The URL that was queried
        size: Size of the raw response in bytes
    """

    document: PushLogDocument
    path: Path
    url: str
    size: int = 0


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class PushLogClientProtocol(Protocol):
    """Interface for anything that can fetch and persist a push log."""

    def pushlog_url(self, window: ReleaseWindow) -> str:
        ...

    def fetch(self, window: ReleaseWindow) -> PushLogFetchResult:
        """Fetch the pushes between ``window.from_tag`` and ``window.to_tag``.

        Raises:
            TransportError: If hg could not be reached
            UpstreamStatusError: If hg answered with a non-2xx status
            MalformedDocumentError: If the body is not a push log
        """
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class HgPushLogClient:
    """Real hg.mozilla.org client.

    Usage:
        client = HgPushLogClient(PipelineConfig())
        result = client.fetch(resolve_window(147))
    """

    SERVICE = "hg.mozilla.org"

    def __init__(
        self,
        config: PipelineConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Pipeline configuration. Uses defaults if None.
            transport: Optional httpx transport, used by tests to fake hg.
        """
        self.config = config or PipelineConfig()
        self._transport = transport

    def pushlog_url(self, window: ReleaseWindow) -> str:
        return build_pushlog_url(self.config.hg_pushes_url, window.from_tag, window.to_tag)

    def fetch(self, window: ReleaseWindow) -> PushLogFetchResult:
        url = self.pushlog_url(window)

        with httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                resp = client.get(url)
            except httpx.HTTPError as exc:
                logger.error("pushlog_transport_failed", url=url, error=str(exc))
                raise TransportError(self.SERVICE, exc) from exc

        if not resp.is_success:
            logger.error("pushlog_bad_status", url=url, status_code=resp.status_code)
            raise UpstreamStatusError(self.SERVICE, resp.status_code, url)

        raw = resp.content
        path = self.save(window.release_number, raw)
        document = parse_pushlog(raw)

        logger.info(
            "pushlog_fetched",
            release=window.release_number,
            pushes=len(document.pushes),
            bytes=len(raw),
            path=str(path),
        )
        return PushLogFetchResult(document=document, path=path, url=url, size=len(raw))

    def save(self, release_number: int, raw: bytes) -> Path:
        """Write the raw body verbatim, replacing any earlier copy."""
        path = self.config.data_dir / pushlog_filename(release_number)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(raw)
        return path
