"""
formatter.py -- Renders an AnalysisResult to terminal output, JSON, or Markdown,
and maps it to the process exit code.
"""

import json
import logging
import os
import sys
from dataclasses import asdict
from typing import Optional

from .models import AnalysisResult, VulnerabilityInfo

logger = logging.getLogger("auditgate.formatter")

W = 68  # output width

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# ---------------------------------------------------------------------------
# Exit status
# ---------------------------------------------------------------------------


def exit_code(result: AnalysisResult) -> int:
    """0 iff the gate passes. The only mapping from a completed analysis to an exit status."""
    code = EXIT_SUCCESS if result.is_successful else EXIT_FAILURE
    logger.debug(
        "Determined exit code %d",
        code,
        extra={"reason": "scan_passed" if result.is_successful else "vulnerabilities_or_expired_entries_found"},
    )
    return code


# ---------------------------------------------------------------------------
# ANSI color control
# ---------------------------------------------------------------------------


def _use_color() -> bool:
    """Return True if stdout is a TTY and color has not been disabled.

    Respects NO_COLOR env var (https://no-color.org) and checks sys.stdout.isatty().
    Can be overridden by calling disable_color().
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


_color_enabled: Optional[bool] = None  # None = auto-detect


def disable_color() -> None:
    """Force-disable color output (called when --no-color flag is set)."""
    global _color_enabled
    _color_enabled = False


def _color_active() -> bool:
    if _color_enabled is not None:
        return _color_enabled
    return _use_color()


SEVERITY_COLORS = {
    "critical": "\033[91m",  # red
    "high": "\033[93m",  # yellow
}


def _reset() -> str:
    return "\033[0m" if _color_active() else ""


def _bold() -> str:
    return "\033[1m" if _color_active() else ""


def _red() -> str:
    return "\033[91m" if _color_active() else ""


def _green() -> str:
    return "\033[92m" if _color_active() else ""


def _yellow() -> str:
    return "\033[93m" if _color_active() else ""


def _s_color(severity: str) -> str:
    return SEVERITY_COLORS.get(severity, "") if _color_active() else ""


# ---------------------------------------------------------------------------
# Layout helpers
# ---------------------------------------------------------------------------


def _bar(char: str = "═") -> str:
    return char * W


def _section(title: str, count: int) -> str:
    bold = _bold()
    reset = _reset()
    return f"\n  {bold}{title} ({count}){reset}\n  {'─' * (W - 2)}"


def _vuln_line(vuln: VulnerabilityInfo) -> str:
    color = _s_color(vuln.severity)
    reset = _reset()
    return f"    • {vuln.package}@{vuln.id}  {color}{vuln.severity.upper()}{reset}  {vuln.title}"


# ---------------------------------------------------------------------------
# Terminal renderer
# ---------------------------------------------------------------------------


def print_terminal(result: AnalysisResult, expiring_days: int = 30) -> None:
    bold = _bold()
    reset = _reset()

    print(f"\n{bold}{_bar()}{reset}")
    if result.is_successful:
        print(f"  {bold}{_green()}SECURITY AUDIT PASSED{reset}")
    else:
        print(f"  {bold}{_red()}SECURITY AUDIT FAILED{reset}")
    print(f"{bold}{_bar()}{reset}")

    if result.vulnerabilities:
        print(_section("NON-ALLOWLISTED HIGH/CRITICAL VULNERABILITIES", len(result.vulnerabilities)))
        for vuln in result.vulnerabilities:
            print(_vuln_line(vuln))
            print(f"      URL: {vuln.url}")

    if result.expired_allowlist_entries:
        print(_section("EXPIRED ALLOWLIST ENTRIES", len(result.expired_allowlist_entries)))
        for vuln in result.expired_allowlist_entries:
            print(_vuln_line(vuln))
            print(f"      Reason was: {vuln.reason}")
            print(f"      Expired on: {vuln.expires_on or 'no expiration date set'}")

    if result.allowed_vulnerabilities:
        print(_section("ALLOWLISTED VULNERABILITIES", len(result.allowed_vulnerabilities)))
        for vuln in result.allowed_vulnerabilities:
            print(_vuln_line(vuln))
            print(f"      Reason: {vuln.reason}")
            if vuln.expires_on:
                print(f"      Expires: {vuln.expires_on}")

    if result.expiring_entries:
        print(_section(f"EXPIRING WITHIN {expiring_days} DAYS", len(result.expiring_entries)))
        for vuln in result.expiring_entries:
            print(f"    {_yellow()}•{reset} {vuln.package}@{vuln.id} expires on {vuln.expires_on}")

    if not result.is_successful:
        print("\n  To fix this:")
        print("    1. Update dependencies to resolve the vulnerabilities")
        print("    2. Or add entries to .audit-allowlist.json with a reason and an expiry date")

    print(f"\n{_bar()}\n")


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def to_json(result: AnalysisResult) -> str:
    d = asdict(result)
    d["is_successful"] = result.is_successful
    d["exit_code"] = exit_code(result)
    return json.dumps(d, indent=2)


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def _md(text: Optional[str]) -> str:
    # Escape pipe characters in free text to avoid breaking table layout.
    return (text or "-").replace("|", "\\|")


def to_markdown(result: AnalysisResult) -> str:
    """Render the result as a Markdown table, suitable for CI job summaries and PR comments."""
    verdict = "PASSED" if result.is_successful else "FAILED"
    lines = [
        f"## Security audit {verdict}",
        "",
        "| Status | Package | ID | Severity | Title | Reason | Expires |",
        "|--------|---------|----|----------|-------|--------|---------|",
    ]
    rows = list(result.vulnerabilities) + list(result.expired_allowlist_entries) + list(result.allowed_vulnerabilities)
    for r in rows:
        lines.append(
            f"| {r.allowlist_status} | {_md(r.package)} | {_md(r.id)} | {r.severity} "
            f"| {_md(r.title)} | {_md(r.reason)} | {_md(r.expires_on)} |"
        )
    if result.expiring_entries:
        lines.append("")
        lines.append("**Expiring soon:** " + ", ".join(f"{_md(r.package)}@{_md(r.id)}" for r in result.expiring_entries))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Structured log lines
# ---------------------------------------------------------------------------


def _sanitized(vuln: VulnerabilityInfo) -> dict[str, str]:
    # Identifiers only; titles, urls and reasons stay out of CI logs.
    return {"package": vuln.package, "id": vuln.id, "severity": vuln.severity}


def log_results(result: AnalysisResult) -> None:
    """Emit the verdict as structured log records for CI log sinks."""
    if result.is_successful:
        logger.info(
            "Security scan passed",
            extra={
                "scan_result": "success",
                "allowed_vulnerabilities_count": len(result.allowed_vulnerabilities),
                "expiring_entries_count": len(result.expiring_entries),
            },
        )
        if result.allowed_vulnerabilities:
            logger.info(
                "Found %d allowlisted vulnerabilities",
                len(result.allowed_vulnerabilities),
                extra={"vulnerabilities": [_sanitized(v) for v in result.allowed_vulnerabilities]},
            )
    else:
        logger.error(
            "Security scan failed",
            extra={
                "scan_result": "failure",
                "vulnerabilities_count": len(result.vulnerabilities),
                "expired_entries_count": len(result.expired_allowlist_entries),
            },
        )
        if result.vulnerabilities:
            logger.error(
                "Found %d non-allowlisted high/critical vulnerabilities",
                len(result.vulnerabilities),
                extra={"vulnerabilities": [_sanitized(v) for v in result.vulnerabilities]},
            )
        if result.expired_allowlist_entries:
            logger.error(
                "%d allowlist entries have expired",
                len(result.expired_allowlist_entries),
                extra={"expired_entries": [_sanitized(v) for v in result.expired_allowlist_entries]},
            )

    if result.expiring_entries:
        logger.warning(
            "%d allowlist entries expire soon",
            len(result.expiring_entries),
            extra={"expiring_entries": [_sanitized(v) for v in result.expiring_entries]},
        )
