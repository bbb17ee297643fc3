"""Collect per-batch bug records and write the final JSON file."""

from __future__ import annotations

import json
from pathlib import Path

from nightly_bugs.logging_config import get_logger
from nightly_bugs.schemas import BugRecord

logger = get_logger(__name__)


def output_filename(release_number: int) -> str:
    return f"json-bugs-nightly{release_number}.json"


class ResultAggregator:
    """Accumulates bug records in batch order.

    Records are kept exactly as Bugzilla returned them. Duplicates are not
    removed here; batches come from a deduplicated ID list, and anything
    Bugzilla repeats is written out as-is.

    Usage:
        aggregator = ResultAggregator(Path("data/output"))
        aggregator.add(batch_one)
        aggregator.add(batch_two)
        path = aggregator.save(147)
    """

    def __init__(self, output_dir: str | Path) -> None:
        self._output_dir = Path(output_dir)
        self.records: list[BugRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def add(self, batch: list[BugRecord]) -> int:
        """Append one batch and return the running total."""
        self.records.extend(batch)
        return len(self.records)

    def output_path(self, release_number: int) -> Path:
        return self._output_dir / output_filename(release_number)

    def save(self, release_number: int) -> Path:
        """Serialize all records as a JSON array, replacing any earlier file."""
        path = self.output_path(release_number)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.records, f)

        logger.info("bugs_exported", release=release_number, bugs=len(self.records), path=str(path))
        return path
