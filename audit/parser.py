"""
audit/parser.py -- Resolve an `npm audit --json` document to a CanonicalReport.

Resolution order:
  1. json.loads -- syntax errors become ParseError (chained, never swallowed)
  2. top-level value must be an object
  3. modern schema (current npm releases emit this, so it is tried first)
  4. legacy schema
  5. fallback: salvage metadata.vulnerabilities counts with an empty
     vulnerability list and a warning; if even that is missing, raise
     UnsupportedFormatError carrying both schemas' diagnostics

No side effects beyond logging. No print statements -- presentation belongs
to the caller.
"""

import json
import logging
from typing import Any, Optional

from audit.normalizers import normalize_legacy, normalize_modern
from audit.schemas import ReportValidator
from core.errors import ParseError, UnsupportedFormatError
from core.models import CanonicalReport, SeverityCounts

logger = logging.getLogger("auditgate.parser")

_COUNT_FIELDS = ("info", "low", "moderate", "high", "critical", "total")


def _reject_constant(name: str) -> None:
    # NaN and Infinity are not JSON.
    raise ValueError(f"Unexpected token {name}")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def _lenient_count(value: Any) -> int:
    """Coerce a count from an unrecognized report; anything unusable is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


def extract_fallback_counts(data: dict) -> Optional[SeverityCounts]:
    """Return severity counts from metadata.vulnerabilities, or None if absent."""
    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        return None
    counts = metadata.get("vulnerabilities")
    if not isinstance(counts, dict):
        return None
    return SeverityCounts(**{name: _lenient_count(counts.get(name)) for name in _COUNT_FIELDS})


class ReportParser:
    """Parse-validate-normalize pipeline for audit reports.

    The ReportValidator is injected so the schemas are built once per process
    and shared by every parse call.
    """

    def __init__(self, validator: Optional[ReportValidator] = None) -> None:
        self.validator = validator or ReportValidator()

    def parse(self, raw_text: str) -> CanonicalReport:
        logger.debug("Parsing audit output (%d chars)", len(raw_text))

        try:
            data = json.loads(raw_text, parse_constant=_reject_constant)
        except ValueError as exc:
            logger.error("Audit output is not valid JSON: %s", exc, extra={"error_type": "JSON_PARSE_ERROR"})
            raise ParseError(f"Failed to parse audit output as JSON: {exc}") from exc

        if not isinstance(data, dict):
            kind = _json_type(data)
            logger.error(
                "Audit output is a JSON %s, expected an object",
                kind,
                extra={"error_type": "INVALID_STRUCTURE", "input_type": kind},
            )
            raise ParseError(f"Invalid audit output: not a valid object (got {kind})")

        modern = self.validator.check_modern(data)
        if modern.ok:
            logger.debug("Detected modern (npm v7+) report format")
            return normalize_modern(modern.report)

        legacy = self.validator.check_legacy(data)
        if legacy.ok:
            logger.debug("Detected legacy (npm v6) report format")
            return normalize_legacy(legacy.report)

        counts = extract_fallback_counts(data)
        if counts is not None:
            logger.warning(
                "Audit output matches no known format; using summary counts only, "
                "vulnerability details could not be extracted",
                extra={
                    "error_type": "UNSUPPORTED_FORMAT",
                    "has_advisories": "advisories" in data,
                    "has_vulnerabilities": "vulnerabilities" in data,
                    "total": counts.total,
                },
            )
            return CanonicalReport(vulnerabilities=(), severity_counts=counts)

        logger.error(
            "Unsupported audit format detected",
            extra={
                "error_type": "UNSUPPORTED_FORMAT",
                "has_advisories": "advisories" in data,
                "has_vulnerabilities": "vulnerabilities" in data,
                "top_level_keys": sorted(data),
            },
        )
        details = "\n".join(
            ["npm v7+ format validation errors:"]
            + [f"  {line}" for line in modern.errors]
            + ["npm v6 format validation errors:"]
            + [f"  {line}" for line in legacy.errors]
        )
        raise UnsupportedFormatError(
            "The provided audit JSON does not match any supported format. "
            "Please ensure you are using a compatible npm version.\n\n"
            f"Validation details:\n{details}",
            modern_errors=modern.errors,
            legacy_errors=legacy.errors,
        )


def parse_report(raw_text: str, validator: Optional[ReportValidator] = None) -> CanonicalReport:
    """Parse audit output with a one-off parser. Prefer a shared ReportParser in loops."""
    return ReportParser(validator).parse(raw_text)
