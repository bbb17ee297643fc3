"""Clients for the external services the pipeline reads from.

These modules talk to hg.mozilla.org (push log) and Bugzilla (bug
metadata) and hand back plain data the pipeline can work with.
"""
