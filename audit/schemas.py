"""
audit/schemas.py -- Pydantic models for the raw `npm audit --json` formats.

Two mutually exclusive shapes are supported:

  Legacy (npm v6):  {"advisories": {"<id>": {...}}, "metadata": {...}}
      Advisories keyed by advisory id. The id itself is numeric in real npm
      output but some registries emit strings, so both are accepted.

  Modern (npm v7+): {"vulnerabilities": {"<package>": {...}}, "metadata": {...}}
      Vulnerabilities keyed by package name. Each carries a `via` list whose
      items are either inline advisories or plain strings naming another
      vulnerable package (a transitive pointer with no advisory data).

Scalars use the Strict* types so "5" is never silently accepted as a count
and 1181493 is never silently accepted as a title. Unknown keys are ignored:
npm adds fields between releases and that must not break the gate.

ReportValidator wraps both models behind one object that the parser receives
by injection, so tests can swap in narrower models without patching globals.
"""

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr, ValidationError

Severity = Literal["info", "low", "moderate", "high", "critical"]

_Count = Annotated[StrictInt, Field(ge=0)]


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class RawSeverityCounts(BaseModel):
    # Missing counts default to zero; a report is never rejected for lacking one.
    info: _Count = 0
    low: _Count = 0
    moderate: _Count = 0
    high: _Count = 0
    critical: _Count = 0
    total: _Count = 0


class RawMetadata(BaseModel):
    vulnerabilities: RawSeverityCounts


# ---------------------------------------------------------------------------
# Legacy (npm v6)
# ---------------------------------------------------------------------------


class RawAdvisory(BaseModel):
    id: Union[StrictInt, StrictStr]
    module_name: StrictStr
    severity: Severity
    title: StrictStr
    url: StrictStr
    vulnerable_versions: StrictStr


class RawLegacyReport(BaseModel):
    advisories: dict[str, RawAdvisory]
    metadata: RawMetadata


# ---------------------------------------------------------------------------
# Modern (npm v7+)
# ---------------------------------------------------------------------------


class RawCvss(BaseModel):
    score: float
    vector_string: Optional[StrictStr] = Field(default=None, alias="vectorString")


class RawViaAdvisory(BaseModel):
    source: StrictInt
    name: StrictStr
    dependency: StrictStr
    title: StrictStr
    url: StrictStr
    severity: Severity
    range: StrictStr
    cwe: Optional[list[StrictStr]] = None
    cvss: Optional[RawCvss] = None


class RawFixInfo(BaseModel):
    name: StrictStr
    version: StrictStr
    is_semver_major: StrictBool = Field(alias="isSemVerMajor")


class RawPackageVulnerability(BaseModel):
    name: StrictStr
    severity: Severity
    is_direct: StrictBool = Field(alias="isDirect")
    via: list[Union[StrictStr, RawViaAdvisory]]
    effects: list[StrictStr]
    range: StrictStr
    nodes: list[StrictStr]
    fix_available: Union[StrictBool, RawFixInfo] = Field(alias="fixAvailable")


class RawModernReport(BaseModel):
    vulnerabilities: dict[str, RawPackageVulnerability]
    metadata: RawMetadata


RawReport = Union[RawLegacyReport, RawModernReport]


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaCheck:
    """Outcome of validating one document against one schema."""

    report: Optional[RawReport] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.report is not None


def describe_validation_error(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into "path: message" lines."""
    lines: list[str] = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"{path}: {err['msg']}")
    return lines


class ReportValidator:
    """Validates parsed JSON against the modern and legacy report schemas.

    Construct once at startup and pass to ReportParser. The model classes are
    parameters so a caller can narrow or extend the accepted shapes.
    """

    def __init__(
        self,
        modern_model: type[RawModernReport] = RawModernReport,
        legacy_model: type[RawLegacyReport] = RawLegacyReport,
    ) -> None:
        self.modern_model = modern_model
        self.legacy_model = legacy_model

    def check_modern(self, data: Any) -> SchemaCheck:
        return self._check(self.modern_model, data)

    def check_legacy(self, data: Any) -> SchemaCheck:
        return self._check(self.legacy_model, data)

    @staticmethod
    def _check(model: type[BaseModel], data: Any) -> SchemaCheck:
        try:
            return SchemaCheck(report=model.model_validate(data))
        except ValidationError as exc:
            return SchemaCheck(errors=describe_validation_error(exc))
