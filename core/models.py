from dataclasses import dataclass, field
from typing import Optional

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Ordered lowest to highest. npm uses exactly these five labels in both
# report generations.
SEVERITIES = ("info", "low", "moderate", "high", "critical")

# Severity floor: only these participate in the pass/fail decision.
BLOCKING_SEVERITIES = frozenset({"high", "critical"})

# Sentinel for "any version" when the report gives an empty range.
ANY_VERSION = "*"

# Default allowlist file name, resolved against the working directory.
ALLOWLIST_FILENAME = ".audit-allowlist.json"

STATUS_NEW = "new"
STATUS_EXPIRED = "expired"
STATUS_ALLOWED = "allowed"


@dataclass(frozen=True)
class SeverityCounts:
    info: int = 0
    low: int = 0
    moderate: int = 0
    high: int = 0
    critical: int = 0
    total: int = 0


@dataclass(frozen=True)
class CanonicalVulnerability:
    id: str
    package: str
    severity: str  # one of SEVERITIES
    title: str
    url: str
    vulnerable_versions: str
    source_format: str  # "legacy" | "modern"


@dataclass(frozen=True)
class CanonicalReport:
    vulnerabilities: tuple[CanonicalVulnerability, ...] = ()
    severity_counts: SeverityCounts = field(default_factory=SeverityCounts)


@dataclass(frozen=True)
class AllowlistEntry:
    id: str
    package: str
    reason: str
    notes: Optional[str] = None
    expires: Optional[str] = None  # ISO 8601 date or datetime
    reviewed_on: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.id, self.package)


@dataclass(frozen=True)
class VulnerabilityInfo:
    id: str
    package: str
    severity: str
    title: str
    url: str
    allowlist_status: str  # new | expired | allowed
    reason: Optional[str] = None
    expires_on: Optional[str] = None


@dataclass(frozen=True)
class AnalysisResult:
    vulnerabilities: tuple[VulnerabilityInfo, ...] = ()
    allowed_vulnerabilities: tuple[VulnerabilityInfo, ...] = ()
    expired_allowlist_entries: tuple[VulnerabilityInfo, ...] = ()
    expiring_entries: tuple[VulnerabilityInfo, ...] = ()

    @property
    def is_successful(self) -> bool:
        # Derived, never stored: a result cannot claim success with findings.
        return not self.vulnerabilities and not self.expired_allowlist_entries
