"""
core/errors.py -- Exception taxonomy for audit-gate.

Every fatal condition the gate can hit derives from AuditGateError so the CLI
can catch one type, log it, and exit non-zero. None of these are retried: all
inputs are static documents, not flaky network calls.

  ParseError              audit output is not valid JSON, or not a JSON object
  UnsupportedFormatError  valid JSON that matches neither report schema and
                          has no salvageable severity counts
  NormalizationError      a validated report broke an internal invariant
                          during conversion (a defect, not a user error)
  AllowlistParseError     allowlist file is not valid JSON
  AllowlistSchemaError    allowlist parses but violates the entry schema
  AuditCommandError       the audit command could not be run
"""

from typing import Optional


class AuditGateError(Exception):
    """Base class for every error that aborts an audit-gate run."""


class ParseError(AuditGateError):
    pass


class UnsupportedFormatError(AuditGateError):
    """Raised when a report matches neither schema and the fallback finds nothing.

    Both schema error lists are kept so a mismatch between npm versions and
    this tool can be diagnosed from the log alone.
    """

    def __init__(
        self,
        message: str,
        modern_errors: Optional[list[str]] = None,
        legacy_errors: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.modern_errors = modern_errors or []
        self.legacy_errors = legacy_errors or []


class NormalizationError(AuditGateError):
    pass


class AllowlistParseError(AuditGateError):
    pass


class AllowlistSchemaError(AuditGateError):
    """Raised when the allowlist violates the entry schema.

    `errors` holds one human-readable message per problem, each prefixed with
    the offending entry index where one applies.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class AuditCommandError(AuditGateError):
    pass
