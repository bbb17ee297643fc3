"""Firefox Nightly bug extraction tool.

Fetches the hg push log for a Nightly cycle, extracts the bug numbers
referenced by its changesets, and collects their Bugzilla metadata into
a single JSON file.
"""

__version__ = "0.1.0"
