"""
tests/test_main.py -- CLI integration tests for main.py.

Reports and allowlists are written to tmp_path; the audit command is patched
at main.run_audit so no npm process is ever started. --now pins the clock.
"""

import io
import json
from unittest.mock import patch

import pytest

from core.errors import AuditCommandError
from main import main


@pytest.fixture
def files(tmp_path, legacy_report):
    report = tmp_path / "audit.json"
    report.write_text(json.dumps(legacy_report), encoding="utf-8")
    allowlist = tmp_path / ".audit-allowlist.json"
    return report, allowlist


def _allow(path, *entries):
    path.write_text(json.dumps(list(entries)), encoding="utf-8")


_JWT = {"id": "755", "package": "jsonwebtoken", "reason": "not reachable", "expires": "2999-01-01"}
_LODASH = {"id": "1001", "package": "lodash", "reason": "override in place", "expires": "2024-01-20"}


class TestExitStatus:
    def test_missing_allowlist_fails_on_new_findings(self, files, capsys, reset_color):
        report, allowlist = files
        code = main(["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-01-01", "--no-color"])
        assert code == 1
        assert "SECURITY AUDIT FAILED" in capsys.readouterr().out

    def test_fully_allowlisted_report_passes(self, files, capsys, reset_color):
        report, allowlist = files
        _allow(allowlist, _JWT, _LODASH)
        code = main(["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-01-01", "--no-color"])
        out = capsys.readouterr().out
        assert code == 0
        assert "SECURITY AUDIT PASSED" in out
        assert "lodash@1001 expires on 2024-01-20" in out

    def test_expired_entry_fails(self, files, capsys):
        report, allowlist = files
        _allow(allowlist, _JWT, _LODASH)
        code = main(["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-06-01", "--format", "json"])
        data = json.loads(capsys.readouterr().out)
        assert code == 1
        assert [v["id"] for v in data["expired_allowlist_entries"]] == ["1001"]


class TestOutputFormats:
    def test_json(self, files, capsys):
        report, allowlist = files
        main(["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-01-01", "--format", "json"])
        data = json.loads(capsys.readouterr().out)
        assert data["exit_code"] == 1
        assert len(data["vulnerabilities"]) == 2

    def test_markdown(self, files, capsys):
        report, allowlist = files
        main(["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-01-01", "--format", "markdown"])
        assert capsys.readouterr().out.startswith("## Security audit FAILED")

    def test_expiring_days_flag(self, files, capsys):
        report, allowlist = files
        _allow(allowlist, _JWT, _LODASH)
        args = ["--report", str(report), "--allowlist", str(allowlist), "--now", "2024-01-01", "--format", "json"]
        main(args + ["--expiring-days", "7"])
        assert json.loads(capsys.readouterr().out)["expiring_entries"] == []


class TestInputSources:
    def test_runs_audit_command_when_no_report_given(self, tmp_path, modern_report, capsys):
        with patch("main.run_audit", return_value=json.dumps(modern_report)) as mock_run:
            code = main(["--allowlist", str(tmp_path / "none.json"), "--now", "2024-01-01", "--format", "json"])
        mock_run.assert_called_once_with("npm audit --json")
        assert code == 1

    def test_reads_report_from_stdin(self, tmp_path, modern_report, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(modern_report)))
        code = main(["--report", "-", "--allowlist", str(tmp_path / "none.json"), "--format", "json"])
        assert code == 1
        assert json.loads(capsys.readouterr().out)["vulnerabilities"][0]["package"] == "minimist"


class TestFatalErrors:
    def test_invalid_report_exits_one(self, tmp_path, capsys):
        report = tmp_path / "audit.json"
        report.write_text("<html>503</html>", encoding="utf-8")
        code = main(["--report", str(report), "--allowlist", str(tmp_path / "none.json")])
        assert code == 1
        assert "Failed to parse audit output as JSON" in capsys.readouterr().err

    def test_invalid_allowlist_exits_one(self, files, capsys):
        report, allowlist = files
        allowlist.write_text('[{"id": "1001", "package": "lodash"}]', encoding="utf-8")
        code = main(["--report", str(report), "--allowlist", str(allowlist)])
        assert code == 1
        assert "missing required property 'reason'" in capsys.readouterr().err

    def test_missing_report_file_exits_one(self, tmp_path, capsys):
        code = main(["--report", str(tmp_path / "nope.json"), "--allowlist", str(tmp_path / "none.json")])
        assert code == 1
        assert "Could not read input" in capsys.readouterr().err

    def test_audit_command_failure_exits_one(self, tmp_path, capsys):
        with patch("main.run_audit", side_effect=AuditCommandError("Error running 'npm'")):
            code = main(["--allowlist", str(tmp_path / "none.json")])
        assert code == 1

    def test_invalid_now_is_a_usage_error(self, files):
        report, allowlist = files
        with pytest.raises(SystemExit) as exc_info:
            main(["--report", str(report), "--now", "yesterday"])
        assert exc_info.value.code == 2

    def test_zero_expiring_days_is_a_usage_error(self, files):
        report, _ = files
        with pytest.raises(SystemExit):
            main(["--report", str(report), "--expiring-days", "0"])

    def test_huge_expiring_days_is_a_usage_error(self, files, capsys):
        report, _ = files
        with pytest.raises(SystemExit) as exc_info:
            main(["--report", str(report), "--expiring-days", "1000000000"])
        assert exc_info.value.code == 2
        assert "--expiring-days must be between 1 and 36500" in capsys.readouterr().err

    def test_report_that_is_not_utf8_exits_one(self, tmp_path, capsys):
        report = tmp_path / "audit.json"
        report.write_bytes(b'{"x": "\xff\xfe"}')
        code = main(["--report", str(report), "--allowlist", str(tmp_path / "none.json")])
        assert code == 1
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_allowlist_that_is_not_utf8_exits_one(self, files, capsys):
        report, allowlist = files
        allowlist.write_bytes(b'[{"id": "\xff"}]')
        code = main(["--report", str(report), "--allowlist", str(allowlist)])
        assert code == 1
        assert "not valid UTF-8" in capsys.readouterr().err
