import threading
from collections.abc import Iterable


class DomainRegistry:
    """Thread-safe ``domain -> occurrence count`` accumulator shared by file scanners.

    Every mutation goes through one lock, so the final map equals some serial
    order of the inserts regardless of how scanner threads interleave. Keys
    are only ever added and counts only ever grow.
    """

    def __init__(self):
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def insert(self, domain: str) -> None:
        with self._lock:
            self._counts[domain] = self._counts.get(domain, 0) + 1

    def insert_many(self, domains: Iterable[str]) -> int:
        items = list(domains)
        if not items:
            return 0
        with self._lock:
            for domain in items:
                self._counts[domain] = self._counts.get(domain, 0) + 1
        return len(items)

    def domains(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def count(self, domain: str) -> int:
        with self._lock:
            return self._counts.get(domain, 0)

    def to_blocklist_string(self) -> str:
        with self._lock:
            return " ".join(self._counts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)
