"""Pytest configuration and fixtures for datebisect tests."""

import os
import stat
import sys
from pathlib import Path

import pytest

from datebisect.core.config import BisectConfig
from datebisect.core.log import ConsoleSink, setup_logger

# Change point used by the standard test collaborator. Canonical
# date strings sort chronologically, so scripts compare them as text.
CHANGE = "2024-01-05 12:00 +0000"
LOW_DATE = "2024-01-01 00:00"
HIGH_DATE = "2024-01-10 00:00"

SCRIPT_HEADER = '''#!{python}
import os
import sys


def record(role):
    with open({calls!r}, "a") as f:
        f.write(role + "|" + "|".join(sys.argv[1:]) + "\\n")


'''


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure console-only logging for the test session.

    Output is visible with pytest -s; nothing is sent to
    logfire.dev.
    """
    setup_logger(console=ConsoleSink(level="debug"))


class Scripts:
    """Writes collaborator executables and reads back their calls.

    Every script appends one line per invocation to calls.log:
    its role followed by its arguments.
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self.calls_file = directory / "calls.log"

    def write(self, name: str, body: str) -> str:
        """Create an executable Python script and return its path."""
        path = self.directory / name
        header = SCRIPT_HEADER.format(
            python=sys.executable, calls=str(self.calls_file)
        )
        path.write_text(header + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP)
        return str(path)

    def calls(self, role: str | None = None) -> list[list[str]]:
        """Recorded invocations as [role, *args], oldest first."""
        if not self.calls_file.exists():
            return []
        lines = self.calls_file.read_text().splitlines()
        calls = [line.split("|") for line in lines if line]
        if role is not None:
            calls = [call for call in calls if call[0] == role]
        return calls

    def passing(self, role: str) -> str:
        return self.write(role, f'record("{role}")\nsys.exit(0)')

    def threshold_test(self, change: str = CHANGE) -> str:
        """Test that exits 1 before change and 0 from change on."""
        return self.write(
            "test",
            f'record("test")\nsys.exit(1 if sys.argv[1] < {change!r} else 0)',
        )

    def settings(self, **overrides) -> dict:
        """Settings for a complete, valid search.

        Default collaborators are written only for roles not in
        overrides, so a script the test wrote under the same name
        is left alone.
        """
        defaults = {
            "reg_update": lambda: self.passing("update"),
            "reg_build": lambda: self.passing("build"),
            "reg_test": self.threshold_test,
        }
        settings = {"low_date": LOW_DATE, "high_date": HIGH_DATE}
        settings.update(overrides)
        for key, write in defaults.items():
            if key not in settings:
                settings[key] = write()
        return settings

    def config(self, **overrides) -> BisectConfig:
        return BisectConfig(**self.settings(**overrides))


@pytest.fixture
def scripts(tmp_path):
    """Collaborator script factory in a temporary directory."""
    directory = tmp_path / "bin"
    directory.mkdir()
    return Scripts(directory)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove DATEBISECT_* variables so only the test's settings apply."""
    for key in list(os.environ):
        if key.upper().startswith("DATEBISECT_"):
            monkeypatch.delenv(key)
