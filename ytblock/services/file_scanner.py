from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field

from ytblock.core.exceptions import SourceUnreadable
from ytblock.services.domain_registry import DomainRegistry
from ytblock.services.line_source import DEFAULT_MAX_LINE_BYTES, LineSource
from ytblock.services.pattern_extractor import PatternExtractor

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_OK = "ok"
STATUS_FAILED = "failed"

SKIP_LINE_TOO_LONG = "line_too_long"


@dataclass(slots=True)
class FileScanOutcome:
    path: str
    compressed: bool = False
    status: str = STATUS_PENDING
    lines_read: int = 0
    lines_skipped: int = 0
    matches: int = 0
    skipped_reasons: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    elapsed_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED

    def skip(self, reason: str) -> None:
        self.lines_skipped += 1
        self.skipped_reasons[reason] = self.skipped_reasons.get(reason, 0) + 1


class FileScanner:
    """Owns one log file for the duration of a scan.

    The only side effect is inserting matches into the shared registry. A
    file that cannot be read ends as ``failed``; whatever it inserted before
    the failure stays in the registry.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        registry: DomainRegistry,
        extractor: PatternExtractor,
        *,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ):
        self.path = os.fspath(path)
        self.registry = registry
        self.extractor = extractor
        self.source = LineSource(self.path, max_line_bytes=max_line_bytes)

    def scan(self) -> FileScanOutcome:
        outcome = FileScanOutcome(path=self.path, compressed=self.source.compressed)
        started = time.perf_counter()
        try:
            for record in self.source:
                outcome.lines_read += 1
                if record.too_long:
                    outcome.skip(SKIP_LINE_TOO_LONG)
                    logger.warning(
                        "scan: skipped line %s in file %s, line is longer than %s bytes",
                        record.line_number,
                        self.path,
                        self.source.max_line_bytes,
                    )
                    continue

                matches = self.extractor.extract(record.data)
                if matches:
                    outcome.matches += self.registry.insert_many(matches)
        except SourceUnreadable as exc:
            outcome.status = STATUS_FAILED
            outcome.error = exc.reason
            logger.warning(
                "scan: skipped unreadable file %s after %s lines: %s",
                self.path,
                outcome.lines_read,
                exc.reason,
            )
        else:
            outcome.status = STATUS_OK
            logger.info(
                "scan: finished processing file %s (lines=%s matches=%s skipped=%s)",
                self.path,
                outcome.lines_read,
                outcome.matches,
                outcome.lines_skipped,
            )
        finally:
            outcome.elapsed_seconds = time.perf_counter() - started
        return outcome
