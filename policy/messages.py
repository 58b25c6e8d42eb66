"""
policy/messages.py -- Turn pydantic validation errors into allowlist messages.

Raw pydantic errors speak in locations like (2, 'reviewedOn') and types like
'extra_forbidden'. The people editing .audit-allowlist.json need
"Entry at index 2: has unexpected property 'reviewedon'" instead.
"""

import logging
from collections import Counter
from typing import Any

logger = logging.getLogger("auditgate.policy.messages")


def _format_one(err: dict[str, Any]) -> str:
    loc = tuple(err.get("loc", ()))
    kind = err.get("type", "")
    message = err.get("msg", "invalid value")

    if not loc:
        if kind == "list_type":
            return "Allowlist must be an array"
        return f"Validation error: {message}"

    index = loc[0]
    if not isinstance(index, int):
        return f"Validation error: {message}"

    prefix = f"Entry at index {index}"
    field = str(loc[-1]) if len(loc) > 1 else None

    if field is None:
        if kind in ("model_type", "model_attributes_type", "dict_type"):
            return f"{prefix}: must be an object"
        return f"{prefix}: {message}"

    if kind == "missing":
        return f"{prefix}: missing required property '{field}'"
    if kind == "string_too_short":
        return f"{prefix}: field {field} cannot be empty"
    if kind == "string_type":
        return f"{prefix}: field {field} must be a string"
    if kind == "extra_forbidden":
        return f"{prefix}: has unexpected property '{field}'"

    logger.warning("Unknown allowlist validation error type: %s", kind, extra={"instance_path": loc})
    return f"{prefix}: field {field} {message}"


def format_allowlist_errors(errors: list[dict[str, Any]]) -> list[str]:
    """Return one readable line per pydantic error, in input order."""
    if not errors:
        return ["Unknown validation error"]

    kinds = Counter(err.get("type", "") for err in errors)
    logger.debug("Formatting %d allowlist validation errors: %s", len(errors), dict(kinds))
    return [_format_one(err) for err in errors]
