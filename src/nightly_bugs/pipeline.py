"""Pipeline orchestrator for a Nightly bug extraction run.

This module ties the components together:
- Tag resolution (tags.py)
- Push log fetch and persistence (context/pushlog.py)
- Bug number extraction (extract.py)
- Batching (batching.py)
- Bugzilla lookups (context/bugzilla.py)
- Aggregation and export (aggregate.py)

The flow is strictly sequential. Every request blocks until it completes,
batches are fetched one after another in order, and a fixed pause is
taken between two Bugzilla requests. Any error aborts the run.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from nightly_bugs.aggregate import ResultAggregator
from nightly_bugs.batching import plan_batches
from nightly_bugs.config import PipelineConfig
from nightly_bugs.console import Reporter
from nightly_bugs.context.bugzilla import BugzillaClient, BugzillaClientProtocol
from nightly_bugs.context.pushlog import HgPushLogClient, PushLogClientProtocol
from nightly_bugs.extract import BugIdExtractor, ExtractionResult
from nightly_bugs.logging_config import get_logger
from nightly_bugs.schemas import ReleaseWindow
from nightly_bugs.tags import resolve_window

logger = get_logger(__name__)

PREVIEW_SIZE = 10


@dataclass
class PipelineResult:
    """Summary of a finished run.

    Attributes:
        window: The tag range that was scanned
        pushlog_path: Where the raw push log was saved
        extraction: Bug numbers found in the push log
        batch_count: Bugzilla requests issued (0 for a dry run)
        bug_count: Bug records collected
        output_path: The exported JSON file, None for a dry run
    """

    window: ReleaseWindow
    pushlog_path: Path
    extraction: ExtractionResult = field(default_factory=ExtractionResult)
    batch_count: int = 0
    bug_count: int = 0
    output_path: Path | None = None


def format_preview(bug_ids: list[int], limit: int = PREVIEW_SIZE) -> str:
    """Comma-joined sample of the first ``limit`` IDs, with an ellipsis if cut."""
    preview = ", ".join(str(bug_id) for bug_id in bug_ids[:limit])
    if len(bug_ids) > limit:
        preview += " …"
    return preview


class NightlyBugPipeline:
    """Runs one release through push log, extraction and Bugzilla.

    Usage:
        pipeline = NightlyBugPipeline(PipelineConfig(), Reporter())
        result = pipeline.run(147)
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        reporter: Reporter | None = None,
        pushlog_client: PushLogClientProtocol | None = None,
        bugzilla_client: BugzillaClientProtocol | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the pipeline with its collaborators.

        Args:
            config: Pipeline configuration. Uses defaults if None.
            reporter: Where progress is printed.
            pushlog_client: hg client. Built from config if None.
            bugzilla_client: Bugzilla client. Built from config if None.
            sleep: Called with ``config.batch_delay`` between Bugzilla requests.
        """
        self.config = config or PipelineConfig()
        self.reporter = reporter or Reporter()
        self.pushlog_client = pushlog_client or HgPushLogClient(self.config)
        self.bugzilla_client = bugzilla_client or BugzillaClient(self.config)
        self.extractor = BugIdExtractor(self.config.compiled_bug_pattern())
        self._sleep = sleep

    def run(self, release_number: int, dry_run: bool = False) -> PipelineResult:
        """Extract the bugs of one Nightly release.

        Args:
            release_number: Nightly version, already validated to be >= 2
            dry_run: Stop after extraction, without touching Bugzilla

        Returns:
            A PipelineResult describing what was produced

        Raises:
            NightlyBugsError: On any transport, status or parse failure
        """
        out = self.reporter
        self._print_header(release_number, dry_run)

        window = resolve_window(release_number)
        url = self.pushlog_client.pushlog_url(window)
        out.line("From tag: " + window.from_tag)
        out.line("To tag:   " + window.to_tag)
        out.line("Fetching hg pushes JSON from:")
        out.line("  " + url, style="magenta")

        fetched = self.pushlog_client.fetch(window)
        out.line("Saved hg log to: " + str(fetched.path), style="green")

        extraction = self.extractor.extract(fetched.document)
        bug_ids = extraction.bug_ids
        out.line(f"Log parsing done. Found {len(bug_ids)} unique bug IDs.")
        if extraction.skipped_entries:
            out.line(
                f"Skipped {extraction.skipped_entries} malformed push log entries.",
                style="yellow",
            )

        result = PipelineResult(window=window, pushlog_path=fetched.path, extraction=extraction)

        if dry_run:
            out.line("DRY-RUN: stopping before Bugzilla queries and JSON export.", style="bold yellow")
            if bug_ids:
                out.line("Sample bug IDs: " + format_preview(bug_ids))
            logger.info("dry_run_complete", release=release_number, unique_bugs=len(bug_ids))
            return result

        batches = plan_batches(bug_ids, self.config.batch_size)
        aggregator = self._fetch_bugs(batches)
        result.batch_count = len(batches)
        result.bug_count = len(aggregator)
        result.output_path = aggregator.save(release_number)

        out.line("Exported JSON: " + str(result.output_path), style="green")
        out.line("Done.", style="cyan")
        return result

    def _fetch_bugs(self, batches: list[list[int]]) -> ResultAggregator:
        """Query Bugzilla batch by batch, in order, pausing between requests."""
        out = self.reporter
        aggregator = ResultAggregator(self.config.output_dir)

        out.line(f"Start querying Bugzilla ({len(batches)} chunks)…", style="cyan")
        for step, batch in enumerate(batches, start=1):
            if step > 1 and self.config.batch_delay:
                self._sleep(self.config.batch_delay)

            out.line(f"  Chunk {step}/{len(batches)} -> requesting {len(batch)} bugs…")
            records = self.bugzilla_client.fetch_batch(batch)
            total = aggregator.add(records)

            out.line(f"    OK - total bugs collected so far: {total}", style="green")
            logger.info(
                "bug_batch_fetched",
                step=step,
                batches=len(batches),
                requested=len(batch),
                returned=len(records),
                total=total,
            )

        return aggregator

    def _print_header(self, release_number: int, dry_run: bool) -> None:
        out = self.reporter
        out.rule()
        out.line("Firefox Nightly Bug Extraction Tool", style="cyan")
        out.line("  - Fetches hg json-pushes for Nightly cycle")
        out.line("  - Extracts bug IDs from pushlog")
        out.line("  - Queries Bugzilla in batches")
        out.line("  - Produces a single JSON file")
        out.rule()
        out.line(f"Nightly release: {release_number}")
        if dry_run:
            out.line("Mode: DRY-RUN (no Bugzilla queries, no final JSON output)", style="bold yellow")
