"""
tests/conftest.py -- Shared fixtures for audit-gate tests.

This module provides:
  - now: a fixed UTC "current time" so expiration tests never touch the clock
  - legacy_report / modern_report: realistic npm v6 and npm v7+ documents
    (as dicts; tests json.dumps them when they need raw text)
  - reset_color: restores the formatter's global color switch after a test

The report fixtures are deliberately mixed-severity so classifier tests can
check that moderate findings are ignored.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone

import pytest

from core import formatter

_LEGACY_REPORT = {
    "advisories": {
        "118": {
            "id": 118,
            "module_name": "tunnel-agent",
            "severity": "moderate",
            "title": "Memory Exposure in tunnel-agent",
            "url": "https://npmjs.com/advisories/118",
            "vulnerable_versions": "<0.6.0",
        },
        "755": {
            "id": 755,
            "module_name": "jsonwebtoken",
            "severity": "high",
            "title": "Verification bypass in jsonwebtoken",
            "url": "https://npmjs.com/advisories/755",
            "vulnerable_versions": "<8.5.1",
        },
        "1001": {
            "id": 1001,
            "module_name": "lodash",
            "severity": "critical",
            "title": "Prototype Pollution in lodash",
            "url": "https://npmjs.com/advisories/1001",
            "vulnerable_versions": "",
        },
    },
    "metadata": {
        "vulnerabilities": {"info": 0, "low": 0, "moderate": 1, "high": 1, "critical": 1, "total": 3},
    },
}

_MODERN_REPORT = {
    "auditReportVersion": 2,
    "vulnerabilities": {
        "minimist": {
            "name": "minimist",
            "severity": "critical",
            "isDirect": False,
            "via": [
                {
                    "source": 1179,
                    "name": "minimist",
                    "dependency": "minimist",
                    "title": "Prototype Pollution",
                    "url": "https://github.com/advisories/GHSA-7fhm-mqm4-2wp7",
                    "severity": "critical",
                    "range": "<0.2.4",
                    "cwe": ["CWE-1321"],
                    "cvss": {"score": 9.8, "vectorString": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"},
                },
                {
                    "source": 1180,
                    "name": "minimist",
                    "dependency": "minimist",
                    "title": "Prototype Pollution (second variant)",
                    "url": "https://github.com/advisories/GHSA-xvch-5gv4-984h",
                    "severity": "moderate",
                    "range": "",
                },
            ],
            "effects": ["mkdirp"],
            "range": "<0.2.4",
            "nodes": ["node_modules/minimist"],
            "fixAvailable": {"name": "mkdirp", "version": "1.0.4", "isSemVerMajor": True},
        },
        "mkdirp": {
            "name": "mkdirp",
            "severity": "critical",
            "isDirect": True,
            "via": ["minimist"],
            "effects": [],
            "range": "0.4.1 - 0.5.1",
            "nodes": ["node_modules/mkdirp"],
            "fixAvailable": True,
        },
    },
    "metadata": {
        "vulnerabilities": {"info": 0, "low": 0, "moderate": 0, "high": 0, "critical": 2, "total": 2},
        "dependencies": {"prod": 3, "dev": 0, "total": 3},
    },
}


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def legacy_report() -> dict:
    return copy.deepcopy(_LEGACY_REPORT)


@pytest.fixture
def modern_report() -> dict:
    return copy.deepcopy(_MODERN_REPORT)


@pytest.fixture
def reset_color():
    """Force color off for the test and restore auto-detection afterwards."""
    formatter.disable_color()
    yield
    formatter._color_enabled = None
