"""Graph workflow definition."""

from pydantic_graph import Graph

from datebisect.core.config import State
from datebisect.core.log import logger
from datebisect.core.result import DateInterval


def create_workflow():
    """Create the bisection workflow graph.

    Initialize → Validate → Search → [Search again or Finalize]

    Returns:
        Graph workflow with State as state_type
    """
    logger.trace("Building workflow graph")

    # Import nodes (lazy to avoid circular imports)
    from datebisect.workflow.nodes.finalize import Finalize
    from datebisect.workflow.nodes.initialize import Initialize
    from datebisect.workflow.nodes.search import Search
    from datebisect.workflow.nodes.validate import Validate

    workflow = Graph(
        nodes=(
            Initialize,
            Validate,
            Search,
            Finalize,
        ),
        state_type=State,
        run_end_type=DateInterval,
    )

    return workflow
