from __future__ import annotations

import asyncio
import enum
import logging
import os
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ytblock.core.config import Settings
from ytblock.core.exceptions import ScanSetupError
from ytblock.services.domain_registry import DomainRegistry
from ytblock.services.file_scanner import STATUS_FAILED, FileScanner, FileScanOutcome
from ytblock.services.line_source import DEFAULT_MAX_LINE_BYTES, is_compressed
from ytblock.services.pattern_extractor import PatternExtractor

logger = logging.getLogger(__name__)

ScannerFactory = Callable[[str, DomainRegistry, PatternExtractor], FileScanner]


class ScanState(str, enum.Enum):
    IDLE = "idle"
    ENUMERATING = "enumerating"
    SCANNING = "scanning"
    AGGREGATED = "aggregated"


@dataclass(slots=True)
class FileFailure:
    path: str
    reason: str


@dataclass(slots=True)
class ScanResult:
    directory: str
    prefix: str
    domains: dict[str, int] = field(default_factory=dict)
    blocklist: str = ""
    files: list[FileScanOutcome] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def distinct_count(self) -> int:
        return len(self.domains)

    @property
    def files_scanned(self) -> int:
        return len(self.files)

    def sorted_domains(self) -> list[str]:
        return sorted(self.domains)


class ScanCoordinator:
    """Runs one scan of a logs directory: enumerate, fan out, join, aggregate.

    Each selected file gets its own worker thread. With ``max_concurrency``
    left at 0 the pool is sized to the number of files, so every file is
    read in parallel; a positive value caps the pool without changing the
    result. A coordinator is single-use.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        prefix: str,
        *,
        extractor: PatternExtractor | None = None,
        registry: DomainRegistry | None = None,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        max_concurrency: int = 0,
        scanner_factory: ScannerFactory | None = None,
    ):
        self.directory = os.fspath(directory)
        self.prefix = prefix or ""
        self.extractor = extractor or PatternExtractor()
        self.registry = registry if registry is not None else DomainRegistry()
        self.max_line_bytes = max_line_bytes
        self.max_concurrency = max(0, int(max_concurrency or 0))
        self._scanner_factory = scanner_factory or self._default_scanner
        self.state = ScanState.IDLE
        self.active_tasks = 0
        self._active_lock = threading.Lock()

    def _default_scanner(self, path: str, registry: DomainRegistry, extractor: PatternExtractor) -> FileScanner:
        return FileScanner(path, registry, extractor, max_line_bytes=self.max_line_bytes)

    def discover_files(self) -> list[str]:
        try:
            with os.scandir(self.directory) as it:
                entries = list(it)
        except OSError as exc:
            raise ScanSetupError(self.directory, str(exc)) from exc

        files: list[str] = []
        for entry in entries:
            if not entry.name.startswith(self.prefix):
                continue
            try:
                if entry.is_dir():
                    continue
            except OSError:
                # Let the scanner report it as an unreadable file.
                pass
            files.append(os.path.abspath(entry.path))
        return sorted(files)

    def _scan_one(self, path: str) -> FileScanOutcome:
        try:
            scanner = self._scanner_factory(path, self.registry, self.extractor)
            return scanner.scan()
        finally:
            with self._active_lock:
                self.active_tasks -= 1

    def _worker_count(self, file_count: int) -> int:
        if self.max_concurrency <= 0:
            return max(1, file_count)
        return max(1, min(file_count, self.max_concurrency))

    async def _scan_files(self, files: list[str]) -> list[FileScanOutcome]:
        if not files:
            return []

        workers = self._worker_count(len(files))
        logger.info("scan: waiting for %s file tasks to finish (workers=%s)", len(files), workers)
        loop = asyncio.get_running_loop()
        with self._active_lock:
            self.active_tasks = len(files)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ytblock-scan") as executor:
            results = await asyncio.gather(
                *(loop.run_in_executor(executor, self._scan_one, path) for path in files),
                return_exceptions=True,
            )

        outcomes: list[FileScanOutcome] = []
        for path, result in zip(files, results):
            if isinstance(result, FileScanOutcome):
                outcomes.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            logger.error("scan: file task crashed for %s", path, exc_info=result)
            outcomes.append(
                FileScanOutcome(
                    path=path,
                    compressed=is_compressed(path),
                    status=STATUS_FAILED,
                    error=f"{result.__class__.__name__}: {result}",
                )
            )
        return outcomes

    async def run(self) -> ScanResult:
        if self.state is not ScanState.IDLE:
            raise RuntimeError(f"scan coordinator already used (state={self.state.value})")

        started = time.perf_counter()
        self.state = ScanState.ENUMERATING
        files = self.discover_files()
        logger.info(
            "scan: %s files matching prefix %r in %s",
            len(files),
            self.prefix,
            self.directory,
        )

        self.state = ScanState.SCANNING
        outcomes = await self._scan_files(files)
        self.state = ScanState.AGGREGATED

        result = ScanResult(
            directory=self.directory,
            prefix=self.prefix,
            domains=self.registry.domains(),
            blocklist=self.registry.to_blocklist_string(),
            files=outcomes,
            failures=[FileFailure(path=o.path, reason=o.error or "unknown error") for o in outcomes if o.failed],
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info(
            "scan: done, %s unique domains from %s files (%s failed) in %.3fs",
            result.distinct_count,
            result.files_scanned,
            len(result.failures),
            result.elapsed_seconds,
        )
        return result


def scan_directory(
    directory: str | os.PathLike[str],
    prefix: str,
    *,
    pattern: str | None = None,
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    max_concurrency: int = 0,
) -> ScanResult:
    coordinator = ScanCoordinator(
        directory,
        prefix,
        extractor=PatternExtractor(pattern),
        max_line_bytes=max_line_bytes,
        max_concurrency=max_concurrency,
    )
    return asyncio.run(coordinator.run())


def scan_with_settings(cfg: Settings) -> ScanResult:
    return scan_directory(
        cfg.PIHOLE_LOGS_DIR,
        cfg.LOG_FILE_NAME_PREFIX,
        pattern=cfg.EDGE_HOSTNAME_PATTERN,
        max_line_bytes=cfg.MAX_LINE_BYTES,
        max_concurrency=cfg.SCAN_MAX_CONCURRENCY,
    )
