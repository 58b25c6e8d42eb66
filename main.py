#!/usr/bin/env python3
"""
audit-gate -- Fail CI builds on new or expired high/critical npm vulnerabilities.

Runs `npm audit --json` (or reads a saved report), reconciles it against the
team's .audit-allowlist.json, and exits 0 when the gate passes, 1 otherwise.

Usage:
  python main.py
  python main.py --report audit.json
  npm audit --json | python main.py --report -
  python main.py --allowlist config/allowlist.json
  python main.py --format json
  python main.py --format markdown >> "$GITHUB_STEP_SUMMARY"
  python main.py --now 2025-01-01 --report audit.json
  python main.py --no-color --verbose

Environment variables (see core/config.py):
  AUDIT_GATE_ALLOWLIST_PATH   Allowlist location (default: .audit-allowlist.json)
  AUDIT_GATE_AUDIT_COMMAND    Command to run when --report is not given
  AUDIT_GATE_EXPIRING_DAYS    "Expiring soon" warning window (default: 30)
  AUDIT_GATE_OUTPUT_FORMAT    terminal, json, or markdown
  AUDIT_GATE_LOG_LEVEL        Log level for stderr diagnostics (default: WARNING)
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from audit.parser import ReportParser
from core.config import get_settings
from core.dates import MAX_EXPIRING_DAYS, parse_utc_date, utc_now
from core.errors import AuditGateError, ParseError
from core.formatter import EXIT_FAILURE, disable_color, exit_code, log_results, print_terminal, to_json, to_markdown
from core.pipeline import analyze_audit_report
from core.runner import run_audit
from policy.allowlist import read_allowlist_file

logger = logging.getLogger("auditgate.cli")


def _read_report(source: Optional[str], audit_command: str) -> str:
    """Return audit JSON from a file, stdin ("-"), or by running the audit command."""
    if not source:
        return run_audit(audit_command)
    try:
        if source == "-":
            return sys.stdin.read()
        return Path(source).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Failed to parse audit output as JSON: input is not valid UTF-8 ({exc})") from exc


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return parse_utc_date(value)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="audit-gate",
        description="Gate CI on high/critical npm audit findings, honoring an expiring allowlist.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --report audit.json --format json
  npm audit --json | python main.py --report -
  python main.py --allowlist config/allowlist.json --expiring-days 14
        """,
    )
    parser.add_argument(
        "--report",
        metavar="PATH",
        help="Read a saved `npm audit --json` report instead of running the audit ('-' for stdin)",
    )
    parser.add_argument(
        "--allowlist",
        metavar="PATH",
        default=settings.allowlist_path,
        help=f"Allowlist file (default: {settings.allowlist_path}). A missing file allows nothing.",
    )
    parser.add_argument(
        "--format",
        choices=["terminal", "json", "markdown"],
        default=settings.output_format,
        metavar="FORMAT",
        help="Output format: terminal (default), json, or markdown",
    )
    parser.add_argument(
        "--expiring-days",
        type=int,
        default=settings.expiring_days,
        metavar="N",
        help=f"Warn about allowlist entries expiring within N days (default: {settings.expiring_days})",
    )
    parser.add_argument(
        "--now",
        metavar="ISO-DATE",
        help="Evaluate expirations as of this UTC date/time instead of the current time",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=settings.no_color,
        help="Disable ANSI color codes in terminal output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log diagnostics at DEBUG level to stderr",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.no_color:
        disable_color()

    if not 1 <= args.expiring_days <= MAX_EXPIRING_DAYS:
        parser.error(f"--expiring-days must be between 1 and {MAX_EXPIRING_DAYS}")

    now = _parse_now(args.now)
    if args.now is not None and now is None:
        parser.error(f"--now: '{args.now}' is not an ISO 8601 date or datetime")

    try:
        audit_text = _read_report(args.report, settings.audit_command)
        allowlist_text = read_allowlist_file(args.allowlist)
        result = analyze_audit_report(
            audit_text,
            allowlist_text,
            now or utc_now(),
            parser=ReportParser(),
            expiring_days=args.expiring_days,
        )
    except AuditGateError as exc:
        logger.error("Audit aborted: %s", exc.__class__.__name__)
        print(f"  [!] {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as exc:
        logger.error("Could not read input: %s", exc)
        print(f"  [!] Could not read input: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    log_results(result)

    if args.format == "json":
        print(to_json(result))
    elif args.format == "markdown":
        print(to_markdown(result))
    else:
        print_terminal(result, expiring_days=args.expiring_days)

    return exit_code(result)


if __name__ == "__main__":
    sys.exit(main())
