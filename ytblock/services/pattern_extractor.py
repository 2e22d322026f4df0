from __future__ import annotations

import re

from ytblock.core.exceptions import ConfigurationError

# r<digits>---sn-<label>.googlevideo.com, label limited to hostname characters.
STRICT_EDGE_PATTERN = r"r[0-9]+---sn-[A-Za-z0-9-]+\.googlevideo\.com"
# Older, looser grammar: single digit and a lazy arbitrary middle segment.
LEGACY_EDGE_PATTERN = r"r[0-9]---sn-.*?\.googlevideo\.com"

PATTERN_PRESETS = {
    "strict": STRICT_EDGE_PATTERN,
    "legacy": LEGACY_EDGE_PATTERN,
}


def resolve_pattern(value: str | None) -> str:
    raw = (value or "").strip()
    if not raw:
        return STRICT_EDGE_PATTERN
    return PATTERN_PRESETS.get(raw.lower(), raw)


class PatternExtractor:
    """Finds edge hostnames in a single raw log line.

    Matching works on bytes so undecodable log content never raises; each
    match is returned as an ASCII string. Matches never overlap and are
    returned left to right.
    """

    def __init__(self, pattern: str | None = None):
        self.pattern = resolve_pattern(pattern)
        try:
            self._regex = re.compile(self.pattern.encode("ascii"))
        except (re.error, UnicodeEncodeError) as exc:
            raise ConfigurationError("EDGE_HOSTNAME_PATTERN", f"invalid pattern {self.pattern!r}: {exc}") from exc

    def extract(self, line: bytes) -> list[str]:
        if not line:
            return []
        return [m.group(0).decode("ascii", errors="replace") for m in self._regex.finditer(line)]
