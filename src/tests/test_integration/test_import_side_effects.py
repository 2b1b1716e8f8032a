"""
Integration tests to prevent import-time dependency explosions and noisy side effects.

These tests run imports in a fresh Python subprocess to avoid interference from
already-imported modules within the pytest process.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def _run_python_import(code: str) -> subprocess.CompletedProcess[str]:
    src_dir = Path(__file__).resolve().parents[2]
    return subprocess.run(
        [sys.executable, "-c", code],
        cwd=str(src_dir),
        capture_output=True,
        text=True,
        check=False,
    )


def test_import_config_is_quiet():
    """
    Importing config should not validate, configure logging, or print to stdout/stderr.
    """
    proc = _run_python_import("import config")

    assert proc.returncode == 0, proc.stderr
    assert (proc.stdout or "") + (proc.stderr or "") == ""


def test_import_services_stays_lightweight():
    """
    Importing services must not drag in the bridge or chart stacks.

    Host-only deployments never render charts; matplotlib is only loaded by charts.
    """
    proc = _run_python_import(
        "import sys, services; "
        "print(','.join(m for m in ('matplotlib', 'websockets', 'bridge') if m in sys.modules))"
    )

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == ""


def test_import_host_side_does_not_load_matplotlib():
    proc = _run_python_import(
        "import sys, host, document, bridge; print('matplotlib' in sys.modules)"
    )

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == "False"
