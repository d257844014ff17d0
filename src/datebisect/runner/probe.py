"""Probe runner: classify one date with the external collaborators."""

from __future__ import annotations

from pydantic import BaseModel

from datebisect.core.clock import to_date_string
from datebisect.core.config import BisectConfig, SearchState
from datebisect.core.errors import (
    BuildFailure,
    PredicateContractViolation,
    UpdateFailure,
)
from datebisect.core.log import logger
from datebisect.core.result import OracleVerdict, ProbeOutcome
from datebisect.runner.collaborator import CollaboratorRunner


class ProbeStats(BaseModel):
    """Counters of collaborator work done by a ProbeRunner."""

    probes: int = 0
    updates: int = 0
    oracle_calls: int = 0
    shortcuts: int = 0
    builds: int = 0
    tests: int = 0


class ProbeRunner:
    """Drive update, oracle, build and test for a date.

    A probe is a fixed sequence: update the tree to the date; when
    the range is established, ask the change oracle whether the
    date is equivalent to an endpoint; otherwise build and test.
    Update and build failures are fatal. No step is retried.
    """

    def __init__(
        self,
        config: BisectConfig,
        collaborators: CollaboratorRunner | None = None,
    ):
        """Initialize probe runner.

        Args:
            config: Settings naming the collaborator executables
            collaborators: Runner used to invoke them; defaults to
                one using config.workdir and config.output_dir
        """
        self.config = config
        self.collaborators = collaborators or CollaboratorRunner(
            config.workdir, config.output_dir
        )
        self.stats = ProbeStats()

    def probe(self, time_point: int, search: SearchState) -> ProbeOutcome:
        """Classify the tree as of time_point.

        Args:
            time_point: Date to probe, epoch seconds
            search: Current search state; its later_than and
                earlier_than are handed to the change oracle

        Returns:
            ProbeOutcome classifying the date

        Raises:
            UpdateFailure: If the update collaborator exits non-zero
            BuildFailure: If the build collaborator exits non-zero
            OracleContractViolation: If the oracle exits outside
                {0, 1, 2}
            PredicateContractViolation: If the test exits outside
                {0, 1}
        """
        date = to_date_string(time_point)
        self.stats.probes += 1

        result = self.collaborators.run(
            "update", self.config.reg_update, date
        )
        self.stats.updates += 1
        if not result.success:
            raise UpdateFailure(result)

        if search.valid_range_established:
            shortcut = self._ask_oracle(date, search)
            if shortcut is not None:
                logger.info(
                    f"{date} unchanged from an endpoint, skipping build "
                    f"and test",
                    outcome=shortcut.value,
                )
                return shortcut

        result = self.collaborators.run("build", self.config.reg_build, date)
        self.stats.builds += 1
        if not result.success:
            raise BuildFailure(result)

        result = self.collaborators.run("test", self.config.reg_test, date)
        self.stats.tests += 1
        outcome = ProbeOutcome.from_test_exit(result.returncode)
        logger.debug(
            f"Test of {date} exited {result.returncode}",
            outcome=outcome.value,
        )
        if outcome is ProbeOutcome.ERROR:
            raise PredicateContractViolation(
                result, "expected exit code 0 or 1"
            )
        return outcome

    def _ask_oracle(
        self, date: str, search: SearchState
    ) -> ProbeOutcome | None:
        """Consult the change oracle, if one is configured.

        Returns:
            UNCHANGED_FROM_LOW/HIGH to skip build and test, or None
        """
        if not self.config.has_changes:
            return None

        result = self.collaborators.run(
            "has-changes",
            self.config.has_changes,
            date,
            search.later_than,
            search.earlier_than,
        )
        self.stats.oracle_calls += 1
        outcome = OracleVerdict.from_result(result).outcome
        if outcome is not None:
            self.stats.shortcuts += 1
        return outcome
