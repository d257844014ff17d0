"""Initialize node - normalize the range and set up the search."""

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from datebisect.core.clock import to_date_string, to_minute, to_time_point
from datebisect.core.config import State
from datebisect.core.errors import InvertedRange, MidpointOutOfRange
from datebisect.core.result import DateInterval
from datebisect.runner.probe import ProbeRunner


@dataclass
class Initialize(BaseNode[State, None, DateInterval]):
    """Convert the configured dates and prepare the search state."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "Validate":
        """Check the range and first midpoint, then start validating.

        Returns:
            Validate: Next node to check the endpoints

        Raises:
            DateParseError: If a configured date is unparseable
            InvertedRange: If LOW_DATE is not before HIGH_DATE
            MidpointOutOfRange: If FIRST_MID is not inside the range
        """
        config = ctx.state.config
        search = ctx.state.runtime.search

        # Bounds live on the minute grid the collaborators are given
        low = to_minute(to_time_point(config.low_date))
        high = to_minute(to_time_point(config.high_date))
        if low >= high:
            raise InvertedRange(
                f"LOW_DATE {to_date_string(low)} must be earlier than "
                f"HIGH_DATE {to_date_string(high)}"
            )

        first_mid = None
        if config.first_mid:
            first_mid = to_minute(to_time_point(config.first_mid))
            if not low < first_mid < high:
                raise MidpointOutOfRange(
                    f"FIRST_MID {to_date_string(first_mid)} is not "
                    f"strictly between {to_date_string(low)} and "
                    f"{to_date_string(high)}"
                )

        search.low = low
        search.high = high
        search.later_than = to_date_string(low)
        search.earlier_than = to_date_string(high)
        search.first_mid = first_mid
        search.status = "validating"

        if ctx.state.runtime.prober is None:
            ctx.state.runtime.prober = ProbeRunner(config)

        ctx.state.runtime.reporter.message(
            1,
            f"Searching between {search.later_than} and "
            f"{search.earlier_than} to within {config.delta}s",
        )

        from datebisect.workflow.nodes.validate import Validate
        return Validate()
