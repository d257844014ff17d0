"""Workflow nodes for graph state machine."""

from datebisect.workflow.nodes.finalize import Finalize
from datebisect.workflow.nodes.initialize import Initialize
from datebisect.workflow.nodes.search import Search
from datebisect.workflow.nodes.validate import Validate

__all__ = [
    "Initialize",
    "Validate",
    "Search",
    "Finalize",
]
