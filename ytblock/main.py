#!/usr/bin/env python3
"""Collect googlevideo edge hostnames from Pi-hole query logs and blacklist them.

Flow:
- scan every log file in the logs directory whose name starts with the prefix
  (rotated ``.gz`` files included)
- write the unique hostnames to the output file, one per line
- after confirmation, pass them to ``pihole -b``
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from ytblock.core.config import Settings, load_settings
from ytblock.core.exceptions import BlocklistCommandError, ConfigurationError, ScanSetupError
from ytblock.core.logging_setup import setup_logging
from ytblock.schemas.scan_report import ScanReport
from ytblock.services.blocklist_command import PiholeBlocklistCommand, Runner
from ytblock.services.scan_coordinator import ScanResult, scan_with_settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
_YES = {"y", "Y"}
_NO = {"n", "N"}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ytblock", description=__doc__.splitlines()[0])
    p.add_argument(
        "--config",
        default=None,
        help=f"JSON config file (default: ./{DEFAULT_CONFIG_PATH} when present; required if given explicitly)",
    )
    p.add_argument("--logs-dir", default=None, help="Directory with Pi-hole query logs (PIHOLE_LOGS_DIR)")
    p.add_argument("--prefix", default=None, help="Only scan files whose name starts with this (LOG_FILE_NAME_PREFIX)")
    p.add_argument("--output", default=None, help="Output txt path (COMPILED_FILE_NAME)")
    p.add_argument("--pattern", default=None, help="Edge hostname regex or preset: strict, legacy")
    p.add_argument("--max-concurrency", type=int, default=None, help="Cap on parallel file readers, 0 = one per file")
    p.add_argument("--report", default=None, help="Also write a JSON scan report to this path")
    p.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    send = p.add_mutually_exclusive_group()
    send.add_argument("--yes", action="store_true", help="Send to the blocklist command without asking")
    send.add_argument("--no-send", action="store_true", help="Only write the output file")
    return p


def _load(args: argparse.Namespace) -> Settings:
    return load_settings(
        args.config or DEFAULT_CONFIG_PATH,
        required=args.config is not None,
        PIHOLE_LOGS_DIR=args.logs_dir,
        LOG_FILE_NAME_PREFIX=args.prefix,
        COMPILED_FILE_NAME=args.output,
        EDGE_HOSTNAME_PATTERN=args.pattern,
        SCAN_MAX_CONCURRENCY=args.max_concurrency,
        LOG_LEVEL=args.log_level,
    )


def write_domains(path: Path, domains: Sequence[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for domain in domains:
            f.write(domain + "\n")


def ask_confirmation(count: int, prompt_input: Callable[[str], str] = input) -> bool:
    print("-----------")
    print(f"Would you like to stick those ({count}) collected domains into *your* pihole? (y/n)")
    print("-----------")
    while True:
        try:
            answer = prompt_input("> ")
        except EOFError:
            logger.info("No answer received, nothing was sent.")
            return False
        key = answer.strip()[:1]
        if key in _YES:
            return True
        if key in _NO:
            return False
        print(f"Your key ({answer.strip()!r}) is not supported. Use: Y, y, N, n")


def send_to_blocklist(cfg: Settings, result: ScanResult, runner: Runner | None = None) -> int:
    command = PiholeBlocklistCommand.from_settings(cfg, runner=runner)
    logger.info("Adding (%s) domains to the blacklist...", result.distinct_count)
    try:
        outcome = command(result.blocklist)
    except BlocklistCommandError as exc:
        logger.error("could not send `blacklist domains` command to pihole: %s", exc)
        return 1

    if outcome.output.strip():
        logger.info("Output from pihole: %s", outcome.output.strip())
    if not outcome.ok:
        logger.error("pihole exited with status %s", outcome.returncode)
        return 1
    logger.info("Finished.")
    return 0


def _print_summary(result: ScanResult, out: Path) -> None:
    print(
        f">>> Done: ({result.distinct_count}) unique extracted domains written to ({out}) "
        f"in ({result.elapsed_seconds:.3f}s)"
    )
    print(f"  Files scanned: {result.files_scanned}")
    if result.failures:
        print(f"  Files skipped: {len(result.failures)}")
        for failure in result.failures:
            print(f"    {failure.path}: {failure.reason}")


def main(
    argv: Sequence[str] | None = None,
    *,
    prompt_input: Callable[[str], str] = input,
    runner: Runner | None = None,
) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = _load(args)
    except ConfigurationError as exc:
        setup_logging(level=args.log_level)
        logger.error("unable to start: %s", exc)
        return 1
    setup_logging(cfg)

    try:
        result = scan_with_settings(cfg)
    except (ConfigurationError, ScanSetupError) as exc:
        logger.error("unable to start: %s", exc)
        return 1

    out = Path(cfg.COMPILED_FILE_NAME).expanduser()
    try:
        write_domains(out, result.sorted_domains())
    except OSError as exc:
        logger.error("could not write output to file (%s): %s", out, exc)
        return 1
    _print_summary(result, out)

    if args.report:
        report_path = Path(args.report).expanduser()
        try:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(ScanReport.from_result(result).model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("could not write scan report (%s): %s", report_path, exc)
            return 1

    if args.no_send:
        return 0
    if result.distinct_count == 0:
        logger.info("No domains collected, nothing to send.")
        return 0

    if args.yes or not cfg.POP_CONFIRMATION_DIALOGUE:
        return send_to_blocklist(cfg, result, runner=runner)

    if not ask_confirmation(result.distinct_count, prompt_input):
        logger.info("No is a no. Bye.")
        return 0
    return send_to_blocklist(cfg, result, runner=runner)


if __name__ == "__main__":
    raise SystemExit(main())
