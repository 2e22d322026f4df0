from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ytblock.services.scan_coordinator import ScanResult


class FileReport(BaseModel):
    path: str
    compressed: bool = False
    status: str
    lines_read: int = 0
    lines_skipped: int = 0
    matches: int = 0
    skipped_reasons: dict[str, int] = Field(default_factory=dict)
    error: str | None = None
    elapsed_seconds: float = 0.0


class FileFailureReport(BaseModel):
    path: str
    reason: str


class ScanReport(BaseModel):
    generated_at: datetime
    directory: str
    prefix: str
    distinct_domains: int
    domains: dict[str, int]
    blocklist: str
    files: list[FileReport]
    failures: list[FileFailureReport]
    elapsed_seconds: float

    @classmethod
    def from_result(cls, result: ScanResult) -> ScanReport:
        return cls(
            generated_at=datetime.now(timezone.utc),
            directory=result.directory,
            prefix=result.prefix,
            distinct_domains=result.distinct_count,
            domains={domain: result.domains[domain] for domain in result.sorted_domains()},
            blocklist=result.blocklist,
            files=[
                FileReport(
                    path=o.path,
                    compressed=o.compressed,
                    status=o.status,
                    lines_read=o.lines_read,
                    lines_skipped=o.lines_skipped,
                    matches=o.matches,
                    skipped_reasons=dict(o.skipped_reasons),
                    error=o.error,
                    elapsed_seconds=round(o.elapsed_seconds, 6),
                )
                for o in result.files
            ],
            failures=[FileFailureReport(path=f.path, reason=f.reason) for f in result.failures],
            elapsed_seconds=round(result.elapsed_seconds, 6),
        )
