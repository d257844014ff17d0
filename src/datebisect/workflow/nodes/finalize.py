"""Finalize node - report the converged range."""

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from datebisect.core.config import State
from datebisect.core.result import DateInterval


@dataclass
class Finalize(BaseNode[State, None, DateInterval]):
    """Print the final range and run the finishing hook."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[DateInterval]:
        """Complete the search.

        Returns:
            End[DateInterval]: The final range

        Raises:
            FinishFailure: If the finishing hook exits non-zero
        """
        search = ctx.state.runtime.search
        reporter = ctx.state.runtime.reporter

        interval = search.interval()
        reporter.success(interval)
        reporter.finish(interval)

        search.status = "done"
        return End(interval)
