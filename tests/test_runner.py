"""Unit tests for core/runner.py -- subprocess is always mocked."""

import subprocess
from unittest.mock import patch

import pytest

from core.errors import AuditCommandError
from core.runner import run_audit


def _completed(returncode=0, stdout="{}", stderr=""):
    return subprocess.CompletedProcess(args=["npm"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunAudit:
    def test_clean_run_returns_stdout(self):
        with patch("core.runner.subprocess.run", return_value=_completed(stdout='{"ok": 1}')) as mock_run:
            assert run_audit() == '{"ok": 1}'
        argv = mock_run.call_args.args[0]
        assert argv == ["npm", "audit", "--json"]

    def test_non_zero_exit_with_output_is_returned(self):
        """npm exits 1 when it finds vulnerabilities; the report is still valid."""
        with patch("core.runner.subprocess.run", return_value=_completed(returncode=1, stdout='{"v": 1}')):
            assert run_audit() == '{"v": 1}'

    def test_non_zero_exit_without_output_raises(self):
        with patch("core.runner.subprocess.run", return_value=_completed(returncode=2, stdout="", stderr="ENOLOCK")):
            with pytest.raises(AuditCommandError, match="ENOLOCK"):
                run_audit()

    def test_missing_executable_raises(self):
        with patch("core.runner.subprocess.run", side_effect=FileNotFoundError("npm")):
            with pytest.raises(AuditCommandError, match="Error running 'npm'") as exc_info:
                run_audit()
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_list_command_and_cwd_are_passed_through(self):
        with patch("core.runner.subprocess.run", return_value=_completed()) as mock_run:
            run_audit(["pnpm", "audit", "--json"], cwd="/srv/app")
        assert mock_run.call_args.args[0] == ["pnpm", "audit", "--json"]
        assert mock_run.call_args.kwargs["cwd"] == "/srv/app"
