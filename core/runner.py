"""
runner.py -- Runs the dependency audit command and captures its JSON output.

This is the only place audit-gate starts a process. npm exits non-zero
whenever it finds vulnerabilities, so a non-zero status with output on stdout
is the normal case and is returned like a clean run; the classifier makes the
pass/fail decision, not npm.
"""

import logging
import shlex
import subprocess
from typing import Optional, Union

from .errors import AuditCommandError

logger = logging.getLogger("auditgate.runner")

DEFAULT_AUDIT_COMMAND = "npm audit --json"


def run_audit(command: Union[str, list[str]] = DEFAULT_AUDIT_COMMAND, cwd: Optional[str] = None) -> str:
    """Run the audit command and return its stdout.

    Raises AuditCommandError if the executable cannot be started, or if it
    exits non-zero without producing any output.
    """
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    logger.debug("Executing audit command: %s", " ".join(argv))

    try:
        completed = subprocess.run(argv, capture_output=True, text=True, cwd=cwd, check=False)
    except OSError as exc:
        logger.error("Audit command could not be started: %s", exc)
        raise AuditCommandError(f"Error running {argv[0]!r}: {exc}") from exc

    if completed.returncode != 0 and not completed.stdout.strip():
        stderr = completed.stderr.strip()
        logger.error(
            "Audit command failed with exit code %d and no output",
            completed.returncode,
            extra={"stderr": stderr[:500]},
        )
        raise AuditCommandError(
            f"Audit command exited with status {completed.returncode} and produced no output"
            + (f": {stderr}" if stderr else "")
        )

    if completed.returncode != 0:
        logger.debug("Audit command reported findings (exit code %d)", completed.returncode)
    logger.debug("Audit command produced %d chars of output", len(completed.stdout))
    return completed.stdout
