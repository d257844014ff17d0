"""Value objects for collaborator runs, probes and the final range."""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path

from pydantic import BaseModel

from datebisect.core.errors import OracleContractViolation


class CollaboratorResult(BaseModel):
    """Result of one collaborator invocation."""

    name: str
    command: str
    returncode: int
    log_file: Path | None = None
    timestamp: datetime

    @property
    def success(self) -> bool:
        """Return True if the collaborator exited zero."""
        return self.returncode == 0


class Classification(str, Enum):
    """Which side of the change a probed date lies on.

    BEFORE: the change is later, keep searching later dates.
    AFTER: the change already happened, keep searching earlier dates.
    """

    BEFORE = "before"
    AFTER = "after"


class ProbeOutcome(str, Enum):
    """Result of probing one date."""

    BEFORE = "before"
    AFTER = "after"
    UNCHANGED_FROM_LOW = "unchanged-from-low"
    UNCHANGED_FROM_HIGH = "unchanged-from-high"
    ERROR = "error"

    @property
    def classification(self) -> Classification | None:
        """Direction this outcome implies, None for ERROR."""
        if self in (ProbeOutcome.BEFORE, ProbeOutcome.UNCHANGED_FROM_LOW):
            return Classification.BEFORE
        if self in (ProbeOutcome.AFTER, ProbeOutcome.UNCHANGED_FROM_HIGH):
            return Classification.AFTER
        return None

    @classmethod
    def from_test_exit(cls, returncode: int) -> ProbeOutcome:
        """Map the test collaborator's exit status.

        1 means the change is still ahead (search later dates),
        0 means it is behind (search earlier dates).
        """
        if returncode == 1:
            return cls.BEFORE
        if returncode == 0:
            return cls.AFTER
        return cls.ERROR


class OracleVerdict(IntEnum):
    """Exit-code contract of the change oracle."""

    NO_SHORTCUT = 0
    LIKE_LOW = 1
    LIKE_HIGH = 2

    @classmethod
    def from_result(cls, result: CollaboratorResult) -> OracleVerdict:
        """Map an oracle run to a verdict.

        Raises:
            OracleContractViolation: For any exit code outside 0-2
        """
        try:
            return cls(result.returncode)
        except ValueError as e:
            raise OracleContractViolation(
                result, "expected exit code 0, 1 or 2"
            ) from e

    @property
    def outcome(self) -> ProbeOutcome | None:
        """Outcome to report without building, None if no shortcut."""
        if self is OracleVerdict.LIKE_LOW:
            return ProbeOutcome.UNCHANGED_FROM_LOW
        if self is OracleVerdict.LIKE_HIGH:
            return ProbeOutcome.UNCHANGED_FROM_HIGH
        return None


class ProbeRecord(BaseModel):
    """One classified probe, kept in the search history."""

    time_point: int
    date: str
    outcome: ProbeOutcome


class DateInterval(BaseModel):
    """Final answer: the change lies after later_than, up to earlier_than."""

    later_than: str
    earlier_than: str
    low: int
    high: int
    probes: int = 0

    @property
    def width(self) -> int:
        """Width of the interval in seconds."""
        return self.high - self.low
