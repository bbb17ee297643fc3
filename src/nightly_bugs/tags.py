"""Derive the Nightly tag range for a release number."""

from __future__ import annotations

from nightly_bugs.schemas import ReleaseWindow, nightly_tag


def resolve_window(release_number: int) -> ReleaseWindow:
    """Build the ReleaseWindow for ``release_number``.

    The caller validates ``release_number >= 2`` beforehand.

    Example:
        >>> resolve_window(147).from_tag
        'FIREFOX_NIGHTLY_146_END'
    """
    previous = release_number - 1
    return ReleaseWindow(
        release_number=release_number,
        previous_release_number=previous,
        from_tag=nightly_tag(previous),
        to_tag=nightly_tag(release_number),
    )
