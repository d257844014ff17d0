"""Search node - probe one midpoint and narrow the range."""

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from datebisect.core.clock import to_date_string
from datebisect.core.config import State
from datebisect.core.result import DateInterval
from datebisect.search.engine import narrow, probe_point


@dataclass
class Search(BaseNode[State, None, DateInterval]):
    """Probe mid, unless the range is already within tolerance."""

    mid: int

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "Search | Finalize":
        """Classify mid and move one bound to it.

        Returns:
            Search: Next step with the recomputed midpoint
            Finalize: If the range is narrower than DELTA
        """
        search = ctx.state.runtime.search
        reporter = ctx.state.runtime.reporter

        if search.width < ctx.state.config.delta:
            from datebisect.workflow.nodes.finalize import Finalize
            return Finalize()

        search.iteration += 1
        date = to_date_string(self.mid)
        reporter.message(2, f"Probe {search.iteration}: {date}")

        outcome = ctx.state.runtime.prober.probe(self.mid, search)
        direction = narrow(search, self.mid, outcome)

        reporter.message(
            1,
            f"{date} is {direction.value} the change, now between "
            f"{search.later_than} and {search.earlier_than}",
            outcome=outcome.value,
            width=search.width,
        )

        return Search(mid=probe_point(search.low, search.high))
