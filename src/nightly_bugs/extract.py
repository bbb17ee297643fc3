"""Bug number extraction from push log changesets.

Walks every push in document order, every changeset in push order, and
collects the bug numbers referenced in commit messages. The default rule
matches "bug 123456" / "Bug123456" anywhere in the message, case
insensitive, and can be replaced through ``PipelineConfig.bug_pattern``.

Malformed pushes or changesets are skipped and counted. One broken
entry should not cost a whole release's worth of bugs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from pydantic import ValidationError

from nightly_bugs.config import DEFAULT_BUG_PATTERN
from nightly_bugs.logging_config import get_logger
from nightly_bugs.schemas import Changeset, Push, PushLogDocument

logger = get_logger(__name__)

BACKOUT_RE = re.compile(r"^\s*(back(ed)?[\s-]*out|backout)\b", re.IGNORECASE)
DIGITS_RE = re.compile(r"[0-9]+")


@dataclass
class ExtractionResult:
    """Bug numbers found in a push log.

    Attributes:
        bug_ids: Every referenced bug, first-seen order, no duplicates
        backout_ids: Bugs referenced by backout changesets (also in bug_ids)
        push_count: Pushes that were read
        changeset_count: Changesets that were read
        skipped_entries: Pushes, changesets or bug references dropped as malformed
    """

    bug_ids: list[int] = field(default_factory=list)
    backout_ids: list[int] = field(default_factory=list)
    push_count: int = 0
    changeset_count: int = 0
    skipped_entries: int = 0


class BugIdExtractor:
    """Extracts referenced bug numbers from a PushLogDocument.

    Usage:
        extractor = BugIdExtractor()
        result = extractor.extract(document)
        result.bug_ids  # [1890001, 1890042, ...]
    """

    def __init__(self, pattern: str | re.Pattern[str] = DEFAULT_BUG_PATTERN) -> None:
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)
        self.pattern = pattern

    def bug_numbers(self, message: str) -> list[int]:
        """All bug numbers referenced in one commit message, in order."""
        return self._scan(message)[0]

    def _scan(self, message: str) -> tuple[list[int], int]:
        """Bug numbers in ``message`` plus the count of unusable matches.

        A match whose group did not participate or is not all digits is not
        a bug reference and is ignored. A digit run too long to convert is
        counted as unusable.
        """
        numbers = []
        unusable = 0
        for match in self.pattern.finditer(message):
            group = match.group(1)
            if group is None or not DIGITS_RE.fullmatch(group):
                continue
            try:
                number = int(group)
            except (TypeError, ValueError) as exc:
                unusable += 1
                logger.warning("bug_reference_skipped", digits=len(group), error=str(exc))
                continue
            if number > 0:
                numbers.append(number)
        return numbers, unusable

    def extract(self, document: PushLogDocument) -> ExtractionResult:
        result = ExtractionResult()
        seen: dict[int, None] = {}
        backouts: dict[int, None] = {}

        for push_id, entry in document.pushes.items():
            try:
                push = Push.model_validate(entry)
            except ValidationError as exc:
                result.skipped_entries += 1
                logger.warning("push_skipped", push_id=push_id, error=str(exc))
                continue
            result.push_count += 1

            for index, raw_changeset in enumerate(push.changesets):
                try:
                    changeset = Changeset.model_validate(raw_changeset)
                except ValidationError as exc:
                    result.skipped_entries += 1
                    logger.warning(
                        "changeset_skipped", push_id=push_id, index=index, error=str(exc)
                    )
                    continue
                result.changeset_count += 1

                numbers, unusable = self._scan(changeset.desc)
                result.skipped_entries += unusable
                for number in numbers:
                    seen.setdefault(number)
                if BACKOUT_RE.match(changeset.desc):
                    for number in numbers:
                        backouts.setdefault(number)

        result.bug_ids = list(seen)
        result.backout_ids = list(backouts)

        logger.info(
            "bug_ids_extracted",
            pushes=result.push_count,
            changesets=result.changeset_count,
            unique_bugs=len(result.bug_ids),
            backouts=len(result.backout_ids),
            skipped=result.skipped_entries,
        )
        return result
