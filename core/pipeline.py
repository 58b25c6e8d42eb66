"""
core/pipeline.py -- Pure audit analysis pipeline.

No side effects beyond logging. No print statements, no file reads, no
subprocesses. Designed to be called by the CLI (main.py) and by tests with a
fixed `now`.
"""

import logging
from datetime import datetime
from typing import Optional

from audit.parser import ReportParser
from core.classifier import classify
from core.dates import EXPIRING_SOON_DAYS
from core.models import AnalysisResult
from policy.allowlist import parse_allowlist

logger = logging.getLogger("auditgate.pipeline")


def analyze_audit_report(
    audit_text: str,
    allowlist_text: Optional[str],
    now: datetime,
    parser: Optional[ReportParser] = None,
    expiring_days: int = EXPIRING_SOON_DAYS,
) -> AnalysisResult:
    """Parse the audit report and allowlist, then classify.

    Raises any AuditGateError from parsing; classification itself never fails.
    """
    report = (parser or ReportParser()).parse(audit_text)
    allowlist = parse_allowlist(allowlist_text)
    result = classify(report, allowlist, now, expiring_days=expiring_days)

    logger.info(
        "Audit analysis completed: %d new, %d allowed, %d expired, %d expiring",
        len(result.vulnerabilities),
        len(result.allowed_vulnerabilities),
        len(result.expired_allowlist_entries),
        len(result.expiring_entries),
        extra={
            "is_successful": result.is_successful,
            "reported_total": report.severity_counts.total,
            "allowlist_entries": len(allowlist),
        },
    )
    return result
