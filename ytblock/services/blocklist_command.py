from __future__ import annotations

import logging
import subprocess  # nosec
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ytblock.core.config import Settings
from ytblock.core.exceptions import BlocklistCommandError

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(slots=True)
class BlocklistCommandResult:
    command: list[str] = field(default_factory=list)
    returncode: int = 0
    output: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class PiholeBlocklistCommand:
    """Hands the collected domains to the Pi-hole blacklist CLI.

    Domains are passed as separate arguments and no shell is involved, so
    log content can never be interpreted as shell syntax.
    """

    def __init__(
        self,
        executable: str = "pihole",
        args: Sequence[str] = ("-b",),
        *,
        timeout: float | None = 300,
        runner: Runner | None = None,
    ):
        if not (executable or "").strip():
            raise BlocklistCommandError("empty blocklist executable")
        self.executable = executable.strip()
        self.args = list(args)
        self.timeout = timeout
        self._runner = runner or subprocess.run

    @classmethod
    def from_settings(cls, cfg: Settings, *, runner: Runner | None = None) -> PiholeBlocklistCommand:
        return cls(
            cfg.PIHOLE_COMMAND,
            cfg.blocklist_args,
            timeout=cfg.PIHOLE_COMMAND_TIMEOUT_SECONDS,
            runner=runner,
        )

    def build_command(self, domains: Sequence[str]) -> list[str]:
        return [self.executable, *self.args, *domains]

    def __call__(self, blocklist: str) -> BlocklistCommandResult:
        domains = (blocklist or "").split()
        if not domains:
            logger.info("blocklist: no domains to add, command not started")
            return BlocklistCommandResult(skipped=True)

        cmd = self.build_command(domains)
        logger.info("blocklist: adding %s domains via %s", len(domains), self.executable)
        logger.debug("blocklist: executing cmd=%s timeout=%s", cmd[: len(self.args) + 1], self.timeout)
        try:
            completed = self._runner(  # nosec
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise BlocklistCommandError(f"blocklist command not found: {self.executable}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BlocklistCommandError(f"blocklist command timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise BlocklistCommandError(f"could not start blocklist command: {exc}") from exc

        output = completed.stdout or ""
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        return BlocklistCommandResult(command=cmd, returncode=completed.returncode, output=output)
