"""
audit/normalizers.py -- Convert validated raw reports to the canonical model.

  normalize_legacy: one CanonicalVulnerability per advisory (1:1)
  normalize_modern: one CanonicalVulnerability per inline `via` advisory
                    (1:many); string `via` entries are pointers to other
                    packages and contribute nothing

Advisory ids are coerced to str here and nowhere else, so numeric legacy ids
and modern ids compare uniformly against the allowlist downstream.
"""

import logging

from audit.schemas import RawLegacyReport, RawModernReport, RawSeverityCounts, RawViaAdvisory
from core.errors import NormalizationError
from core.models import ANY_VERSION, SEVERITIES, CanonicalReport, CanonicalVulnerability, SeverityCounts

logger = logging.getLogger("auditgate.normalizers")


def _counts(raw: RawSeverityCounts) -> SeverityCounts:
    return SeverityCounts(
        info=raw.info,
        low=raw.low,
        moderate=raw.moderate,
        high=raw.high,
        critical=raw.critical,
        total=raw.total,
    )


def _checked(vuln: CanonicalVulnerability) -> CanonicalVulnerability:
    # Schema validation guarantees these; failing here means a schema/normalizer mismatch.
    if not vuln.id:
        raise NormalizationError(f"Advisory for package {vuln.package!r} normalized to an empty id")
    if vuln.severity not in SEVERITIES:
        raise NormalizationError(f"Advisory {vuln.id} has unknown severity {vuln.severity!r}")
    return vuln


def normalize_legacy(raw: RawLegacyReport) -> CanonicalReport:
    vulnerabilities: list[CanonicalVulnerability] = []
    for advisory in raw.advisories.values():
        vulnerabilities.append(
            _checked(
                CanonicalVulnerability(
                    id=str(advisory.id),
                    package=advisory.module_name,
                    severity=advisory.severity,
                    title=advisory.title,
                    url=advisory.url,
                    vulnerable_versions=advisory.vulnerable_versions or ANY_VERSION,
                    source_format="legacy",
                )
            )
        )

    logger.debug("Normalized legacy report: %d advisories", len(vulnerabilities))
    return CanonicalReport(
        vulnerabilities=tuple(vulnerabilities),
        severity_counts=_counts(raw.metadata.vulnerabilities),
    )


def normalize_modern(raw: RawModernReport) -> CanonicalReport:
    vulnerabilities: list[CanonicalVulnerability] = []
    for package_name, package_vuln in raw.vulnerabilities.items():
        for via in package_vuln.via:
            if not isinstance(via, RawViaAdvisory):
                continue
            vulnerabilities.append(
                _checked(
                    CanonicalVulnerability(
                        id=str(via.source),
                        package=package_name,
                        severity=via.severity,
                        title=via.title,
                        url=via.url,
                        vulnerable_versions=via.range or ANY_VERSION,
                        source_format="modern",
                    )
                )
            )

    logger.debug(
        "Normalized modern report: %d packages, %d advisories",
        len(raw.vulnerabilities),
        len(vulnerabilities),
    )
    return CanonicalReport(
        vulnerabilities=tuple(vulnerabilities),
        severity_counts=_counts(raw.metadata.vulnerabilities),
    )
