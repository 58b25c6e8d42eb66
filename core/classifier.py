"""
core/classifier.py -- Join canonical vulnerabilities against the allowlist.

Each high/critical vulnerability lands in exactly one of three buckets:

  vulnerabilities            no allowlist entry            (status "new")
  expired_allowlist_entries  entry exists but has expired  (status "expired")
  allowed_vulnerabilities    entry exists and is current   (status "allowed")

Allowed vulnerabilities whose entry expires within the threshold are also
copied to expiring_entries -- a warning, not a failure. Severities below the
floor (info, low, moderate) are skipped entirely.

Pure and deterministic: the same report, allowlist, and `now` always yield an
equal AnalysisResult. Report order is preserved, never re-sorted.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from core.dates import EXPIRING_SOON_DAYS, is_expired, will_expire_soon
from core.models import (
    BLOCKING_SEVERITIES,
    STATUS_ALLOWED,
    STATUS_EXPIRED,
    STATUS_NEW,
    AllowlistEntry,
    AnalysisResult,
    CanonicalReport,
    CanonicalVulnerability,
    VulnerabilityInfo,
)


def find_allowlist_entry(
    vulnerability: CanonicalVulnerability, allowlist: Sequence[AllowlistEntry]
) -> Optional[AllowlistEntry]:
    """Return the first entry matching (id, package) exactly, or None."""
    if not vulnerability.id or not vulnerability.package:
        return None
    vuln_id = str(vulnerability.id)
    for entry in allowlist:
        if entry.id == vuln_id and entry.package == vulnerability.package:
            return entry
    return None


def _info(
    vulnerability: CanonicalVulnerability, status: str, entry: Optional[AllowlistEntry] = None
) -> VulnerabilityInfo:
    return VulnerabilityInfo(
        id=vulnerability.id,
        package=vulnerability.package,
        severity=vulnerability.severity,
        title=vulnerability.title,
        url=vulnerability.url,
        allowlist_status=status,
        reason=entry.reason if entry else None,
        expires_on=entry.expires if entry else None,
    )


def classify(
    report: CanonicalReport,
    allowlist: Sequence[AllowlistEntry],
    now: datetime,
    expiring_days: int = EXPIRING_SOON_DAYS,
) -> AnalysisResult:
    new: list[VulnerabilityInfo] = []
    allowed: list[VulnerabilityInfo] = []
    expired: list[VulnerabilityInfo] = []
    expiring: list[VulnerabilityInfo] = []

    for vulnerability in report.vulnerabilities:
        if vulnerability.severity not in BLOCKING_SEVERITIES:
            continue

        entry = find_allowlist_entry(vulnerability, allowlist)
        if entry is None:
            new.append(_info(vulnerability, STATUS_NEW))
        elif is_expired(entry.expires, now):
            expired.append(_info(vulnerability, STATUS_EXPIRED, entry))
        else:
            info = _info(vulnerability, STATUS_ALLOWED, entry)
            allowed.append(info)
            if will_expire_soon(entry.expires, now, expiring_days):
                expiring.append(info)

    return AnalysisResult(
        vulnerabilities=tuple(new),
        allowed_vulnerabilities=tuple(allowed),
        expired_allowlist_entries=tuple(expired),
        expiring_entries=tuple(expiring),
    )
