"""Endpoint validation: make sure the range brackets a change."""

from datebisect.core.clock import to_date_string
from datebisect.core.config import SearchState
from datebisect.core.errors import UnexpectedEndpointResult
from datebisect.core.log import logger
from datebisect.core.result import Classification, ProbeOutcome, ProbeRecord

# Direction each endpoint must classify as
EXPECTED = {
    "low": Classification.BEFORE,
    "high": Classification.AFTER,
}


class EndpointValidator:
    """Probe the range endpoints before trusting the range."""

    def __init__(self, prober):
        """Initialize validator.

        Args:
            prober: Object with probe(time_point, search) ->
                ProbeOutcome
        """
        self.prober = prober

    def check(self, bound: str, search: SearchState) -> ProbeOutcome:
        """Probe one endpoint and require its expected direction.

        Args:
            bound: "low" or "high"
            search: Search state holding the endpoint

        Returns:
            The endpoint's outcome

        Raises:
            UnexpectedEndpointResult: If the endpoint classifies the
                other way, or not at all
        """
        time_point = search.low if bound == "low" else search.high
        date = to_date_string(time_point)
        expected = EXPECTED[bound]

        logger.info(f"Checking {bound} date {date}")
        outcome = self.prober.probe(time_point, search)
        search.history.append(
            ProbeRecord(time_point=time_point, date=date, outcome=outcome)
        )

        if outcome.classification is not expected:
            raise UnexpectedEndpointResult(bound, date, expected, outcome)
        return outcome

    def validate(
        self,
        search: SearchState,
        skip_low: bool = False,
        skip_high: bool = False,
    ) -> None:
        """Check both endpoints, then mark the range as established.

        Skipping an endpoint trusts it as given, for resuming an
        interrupted search.
        """
        for bound, skip in (("low", skip_low), ("high", skip_high)):
            if skip:
                logger.info(f"Skipping check of {bound} date")
                continue
            self.check(bound, search)

        search.valid_range_established = True
