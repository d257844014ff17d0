"""Tests for endpoint validation."""

import pytest

from datebisect.core.clock import to_time_point
from datebisect.core.config import SearchState
from datebisect.core.errors import UnexpectedEndpointResult
from datebisect.core.result import ProbeOutcome
from datebisect.search.validator import EndpointValidator
from fakes import FixedProber, ThresholdProber

LOW = to_time_point("2024-01-01 00:00")
HIGH = to_time_point("2024-01-10 00:00")


@pytest.fixture
def search():
    return SearchState(low=LOW, high=HIGH)


def test_valid_range_established(search):
    prober = ThresholdProber("2024-01-05 12:00")

    EndpointValidator(prober).validate(search)

    assert search.valid_range_established is True
    assert prober.calls == [LOW, HIGH]
    assert [r.outcome for r in search.history] == [
        ProbeOutcome.BEFORE, ProbeOutcome.AFTER
    ]


def test_low_endpoint_wrong_direction(search):
    prober = FixedProber(ProbeOutcome.AFTER)

    with pytest.raises(UnexpectedEndpointResult) as excinfo:
        EndpointValidator(prober).validate(search)

    assert excinfo.value.bound == "low"
    assert prober.calls == [LOW]
    assert search.valid_range_established is False


def test_high_endpoint_wrong_direction(search):
    prober = FixedProber(ProbeOutcome.BEFORE)

    with pytest.raises(UnexpectedEndpointResult, match="high date"):
        EndpointValidator(prober).validate(search)

    assert prober.calls == [LOW, HIGH]
    assert search.valid_range_established is False


def test_unclassified_endpoint_is_unexpected(search):
    with pytest.raises(UnexpectedEndpointResult):
        EndpointValidator(FixedProber(ProbeOutcome.ERROR)).check("low", search)


def test_skip_low(search):
    prober = ThresholdProber("2024-01-05 12:00")

    EndpointValidator(prober).validate(search, skip_low=True)

    assert prober.calls == [HIGH]
    assert search.valid_range_established is True


def test_skip_both(search):
    prober = FixedProber(ProbeOutcome.ERROR)

    EndpointValidator(prober).validate(search, skip_low=True, skip_high=True)

    assert prober.calls == []
    assert search.valid_range_established is True
