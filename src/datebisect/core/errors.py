"""Error taxonomy.

Every error is fatal: nothing is retried, because a flaky
update/build/test pipeline breaks the assumption that the
classification is monotonic across the range.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datebisect.core.result import CollaboratorResult


class BisectError(Exception):
    """Base class for all datebisect failures."""

    exit_code = 1


class ConfigError(BisectError):
    """Missing or invalid setting."""

    exit_code = 2


class InvertedRange(ConfigError):
    """LOW_DATE does not precede HIGH_DATE."""


class MidpointOutOfRange(ConfigError):
    """FIRST_MID does not lie strictly inside the range."""


class DateParseError(BisectError):
    """A date string could not be interpreted."""

    def __init__(self, text: str, reason: str = ""):
        self.text = text
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot parse date {text!r}{detail}")


class UnexpectedEndpointResult(BisectError):
    """An endpoint did not classify the way the range claims."""

    def __init__(self, bound: str, date: str, expected, actual):
        self.bound = bound
        self.date = date
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{bound} date {date} classified as {actual.value}, "
            f"expected {expected.value}; the range does not bracket "
            f"a change or the test is unstable"
        )


class CollaboratorFailure(BisectError):
    """An external collaborator broke its exit-code contract."""

    what = "collaborator"

    def __init__(self, result: CollaboratorResult, detail: str = ""):
        self.result = result
        message = (
            f"{self.what} failed with exit code {result.returncode}: "
            f"{result.command}"
        )
        if detail:
            message = f"{message} ({detail})"
        if result.log_file:
            message = f"{message}; see {result.log_file}"
        super().__init__(message)


class UpdateFailure(CollaboratorFailure):
    what = "Update"


class BuildFailure(CollaboratorFailure):
    what = "Build"


class FinishFailure(CollaboratorFailure):
    what = "Finishing hook"


class OracleContractViolation(CollaboratorFailure):
    """Change oracle exited outside {0, 1, 2}."""

    what = "Change oracle"


class PredicateContractViolation(CollaboratorFailure):
    """Test collaborator exited outside {0, 1}."""

    what = "Test"


__all__ = [
    "BisectError",
    "ConfigError",
    "InvertedRange",
    "MidpointOutOfRange",
    "DateParseError",
    "UnexpectedEndpointResult",
    "CollaboratorFailure",
    "UpdateFailure",
    "BuildFailure",
    "FinishFailure",
    "OracleContractViolation",
    "PredicateContractViolation",
]
