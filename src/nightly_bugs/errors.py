"""Error taxonomy for the Nightly bug pipeline.

All errors are terminal: nothing in the pipeline retries or recovers.
The CLI catches ``NightlyBugsError``, prints the message to stderr and
exits with status 1.
"""

from __future__ import annotations


class NightlyBugsError(Exception):
    """Base class for every error the pipeline reports to the user."""


class UsageError(NightlyBugsError):
    """Bad or missing command-line input. Raised before any network call."""


class ConfigError(UsageError):
    """Invalid configuration value (environment or CLI option)."""


class TransportError(NightlyBugsError):
    """A network-level failure while talking to an external service.

    Attributes:
        service: Which service was being contacted ("hg", "bugzilla")
        cause: The underlying httpx exception
    """

    def __init__(self, service: str, cause: Exception) -> None:
        self.service = service
        self.cause = cause
        super().__init__(f"Network error while contacting {service}: {cause}")


class UpstreamStatusError(NightlyBugsError):
    """An external service answered with a non-2xx HTTP status."""

    def __init__(self, service: str, status_code: int, url: str = "") -> None:
        self.service = service
        self.status_code = status_code
        self.url = url
        super().__init__(f"{service} returned HTTP {status_code}")


class MalformedDocumentError(NightlyBugsError):
    """A response body could not be parsed as the expected JSON document.

    The raw body is kept on the exception so it can be shown for diagnosis.
    """

    def __init__(self, detail: str, raw: str | bytes = "") -> None:
        self.detail = detail
        self.raw = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        super().__init__(detail)

    def __str__(self) -> str:
        if not self.raw:
            return self.detail
        return f"{self.detail}\nRaw response:\n{self.raw}"


class MalformedResponseError(MalformedDocumentError):
    """A Bugzilla metadata response that is not valid JSON."""
