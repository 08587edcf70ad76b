"""Pytest configuration and fixtures for topocheck tests."""
from pathlib import Path

import pytest


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    Prevents a silent "no data collected" run that reports 0% coverage
    without failing.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))
    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'topocheck' (the installed package) not 'src/topocheck'.",
            returncode=1
        )


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep developer shell settings from leaking into policy resolution."""
    monkeypatch.delenv("TOPOCHECK_POLICY", raising=False)
    monkeypatch.delenv("TOPOCHECK_NAMESPACE_PREFIX", raising=False)
