"""Bisection engine: narrow a date range down to the tolerance."""

from __future__ import annotations

import asyncio

from datebisect.core.clock import to_date_string, to_minute
from datebisect.core.config import BisectConfig, Runtime, SearchState, State
from datebisect.core.errors import BisectError
from datebisect.core.log import logger
from datebisect.core.result import (
    Classification,
    DateInterval,
    ProbeOutcome,
    ProbeRecord,
)


def midpoint(low: int, high: int) -> int:
    """Midpoint of a range, computed from the halves of its bounds.

    Halving first keeps the intermediate value within the range of
    the bounds themselves. When both bounds are odd the result is
    one second below the true midpoint.
    """
    return low // 2 + high // 2


def probe_point(low: int, high: int) -> int:
    """Date to probe next: the midpoint, snapped down to the minute.

    For minute-aligned bounds at least two minutes apart the result
    lies strictly inside the range.
    """
    return to_minute(midpoint(low, high))


def narrow(search: SearchState, mid: int, outcome: ProbeOutcome) -> Classification:
    """Move one bound of the range to a classified midpoint.

    BEFORE (or unchanged from the low end) moves low up to mid,
    AFTER (or unchanged from the high end) moves high down to mid.

    Returns:
        The direction applied

    Raises:
        BisectError: If the outcome carries no direction
        ValueError: If mid is not strictly inside the range
    """
    if not search.low < mid < search.high:
        raise ValueError(
            f"Midpoint {mid} outside range ({search.low}, {search.high})"
        )

    direction = outcome.classification
    if direction is None:
        raise BisectError(
            f"Probe of {to_date_string(mid)} did not classify the date"
        )

    search.history.append(
        ProbeRecord(time_point=mid, date=to_date_string(mid), outcome=outcome)
    )
    if direction is Classification.BEFORE:
        search.low = mid
        search.later_than = to_date_string(mid)
    else:
        search.high = mid
        search.earlier_than = to_date_string(mid)
    return direction


class BisectionEngine:
    """Owns the search state and runs the bisection workflow.

    The workflow is a pydantic-graph state machine:
    Initialize → Validate → Search (repeated) → Finalize
    """

    def __init__(
        self,
        config: BisectConfig,
        prober=None,
        reporter=None,
    ):
        """Initialize engine.

        Args:
            config: Validated settings
            prober: Probe runner to use; built from config if None
            reporter: Reporter to use; built from config if None
        """
        from datebisect.search.report import Reporter

        self.state = State(
            config=config,
            runtime=Runtime(
                prober=prober,
                reporter=reporter or Reporter(config),
            ),
        )

    @property
    def search(self) -> SearchState:
        """Current search state."""
        return self.state.runtime.search

    @property
    def reporter(self):
        return self.state.runtime.reporter

    async def run(self) -> DateInterval:
        """Run the search to convergence.

        Returns:
            The final interval

        Raises:
            BisectError: On any validation or collaborator failure
        """
        from datebisect.workflow.graph import create_workflow
        from datebisect.workflow.nodes import Initialize

        workflow = create_workflow()
        async with workflow.iter(Initialize(), state=self.state) as run:
            async for node in run:
                logger.trace(f"Workflow step {type(node).__name__}")

        return run.result.output

    def run_sync(self) -> DateInterval:
        """Run the search from synchronous code."""
        return asyncio.run(self.run())

    async def run_workflow(self) -> int:
        """Run the search and report any failure.

        Returns:
            Exit code (0=converged)
        """
        try:
            await self.run()
        except BisectError as err:
            self.search.status = "error"
            self.reporter.fatal(err, self.search)
            return err.exit_code
        return 0
