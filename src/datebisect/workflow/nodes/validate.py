"""Validate node - confirm the endpoints bracket the change."""

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from datebisect.core.config import State
from datebisect.core.result import DateInterval
from datebisect.search.engine import probe_point
from datebisect.search.validator import EndpointValidator


@dataclass
class Validate(BaseNode[State, None, DateInterval]):
    """Probe both endpoints unless SKIP_LOW/SKIP_HIGH say not to."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "Search":
        """Validate the range and pick the first midpoint.

        Returns:
            Search: First search step

        Raises:
            UnexpectedEndpointResult: If an endpoint classifies the
                wrong way
        """
        config = ctx.state.config
        search = ctx.state.runtime.search

        validator = EndpointValidator(ctx.state.runtime.prober)
        validator.validate(
            search, skip_low=config.skip_low, skip_high=config.skip_high
        )
        search.status = "searching"
        ctx.state.runtime.reporter.message(1, "Range established")

        mid = search.first_mid
        if mid is None:
            mid = probe_point(search.low, search.high)

        from datebisect.workflow.nodes.search import Search
        return Search(mid=mid)
