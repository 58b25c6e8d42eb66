"""
policy/allowlist.py -- Load and validate the accepted-risk allowlist.

File format (.audit-allowlist.json): a JSON array of objects.

  [
    {
      "id": "1179",                    required, non-empty
      "package": "minimist",           required, non-empty
      "reason": "dev-only dependency", required, non-empty
      "expires": "2025-06-30",         optional ISO 8601 date/datetime
      "reviewedOn": "2025-01-15",      optional
      "notes": "tracked in #412"       optional
    }
  ]

Unknown keys are rejected so a typo like "expiers" fails loudly instead of
silently producing an entry with no expiration (which would then be treated
as expired). Two entries with the same (id, package) are also rejected: only
one of them could ever match, so the other is a policy document mistake.

A missing file is not an error. No allowlist means nothing is allowed.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from core.errors import AllowlistParseError, AllowlistSchemaError
from core.models import AllowlistEntry
from policy.messages import format_allowlist_errors

logger = logging.getLogger("auditgate.allowlist")

_RequiredText = Annotated[StrictStr, Field(min_length=1)]


class AllowlistEntryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: _RequiredText
    package: _RequiredText
    reason: _RequiredText
    notes: Optional[StrictStr] = None
    expires: Optional[StrictStr] = None
    reviewed_on: Optional[StrictStr] = Field(default=None, alias="reviewedOn")

    def to_entry(self) -> AllowlistEntry:
        return AllowlistEntry(
            id=self.id,
            package=self.package,
            reason=self.reason,
            notes=self.notes,
            expires=self.expires,
            reviewed_on=self.reviewed_on,
        )


_ALLOWLIST_ADAPTER = TypeAdapter(list[AllowlistEntryModel])


def _reject_constant(name: str) -> None:
    raise ValueError(f"Unexpected token {name}")


def _duplicate_errors(entries: list[AllowlistEntry]) -> list[str]:
    first_seen: dict[tuple[str, str], int] = {}
    errors: list[str] = []
    for index, entry in enumerate(entries):
        if entry.key in first_seen:
            errors.append(
                f"Entry at index {index}: duplicate of entry at index {first_seen[entry.key]} "
                f"(id '{entry.id}', package '{entry.package}')"
            )
        else:
            first_seen[entry.key] = index
    return errors


def parse_allowlist(text: Optional[str]) -> tuple[AllowlistEntry, ...]:
    """Parse and validate allowlist JSON. None (no file) yields an empty allowlist.

    Raises AllowlistParseError on invalid JSON and AllowlistSchemaError when
    the document does not match the entry schema.
    """
    if text is None:
        logger.debug("No allowlist provided, using empty allowlist")
        return ()

    logger.debug("Parsing allowlist (%d chars)", len(text))

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        logger.error("Allowlist is not valid JSON: %s", exc, extra={"error_type": "JSON_PARSE_ERROR"})
        raise AllowlistParseError(
            "Failed to parse allowlist file as JSON. The file contains invalid JSON syntax.\n"
            f"Error details: {exc}\n"
            "Please check your .audit-allowlist.json file for:\n"
            "- Missing commas between array elements or object properties\n"
            "- Unescaped quotes in strings\n"
            "- Trailing commas (not allowed in JSON)\n"
            "- Mismatched brackets or braces"
        ) from exc

    try:
        models = _ALLOWLIST_ADAPTER.validate_python(data)
    except ValidationError as exc:
        messages = format_allowlist_errors(exc.errors())
        _raise_schema_error(messages, data)

    entries = [model.to_entry() for model in models]
    duplicates = _duplicate_errors(entries)
    if duplicates:
        _raise_schema_error(duplicates, data)

    logger.debug("Loaded %d allowlist entries", len(entries))
    return tuple(entries)


def _raise_schema_error(messages: list[str], data: Union[list, object]) -> NoReturn:
    logger.error(
        "Allowlist validation failed",
        extra={
            "error_type": "SCHEMA_VALIDATION_ERROR",
            "validation_errors_count": len(messages),
            "entry_count": len(data) if isinstance(data, list) else 0,
        },
    )
    raise AllowlistSchemaError(
        "Allowlist file validation failed. The JSON structure does not match the required schema.\n"
        + "\n".join(f"- {message}" for message in messages)
        + "\nPlease ensure your .audit-allowlist.json file follows the correct format.",
        errors=messages,
    )


def read_allowlist_file(path: Union[str, Path]) -> Optional[str]:
    """Return the allowlist file's text, or None if it does not exist.

    Other OS errors (permissions, a directory at the path) propagate: an
    unreadable policy file must not be mistaken for "no policy".
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.info("Allowlist file not found at %s; all high/critical findings will fail the audit", file_path)
        return None
    try:
        content = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        logger.error("Allowlist file %s is not valid UTF-8", file_path, extra={"error_type": "ENCODING_ERROR"})
        raise AllowlistParseError(f"Failed to parse allowlist file {file_path}: file is not valid UTF-8 ({exc})") from exc
    logger.info("Loaded allowlist file %s (%d bytes)", file_path, len(content))
    return content
