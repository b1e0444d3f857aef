"""Property-based tests for readiness waiter termination."""

import logging
import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from armada.constants import WorkloadKind
from armada.exceptions import ReadinessTimeoutError
from armada.waiter import Observation, ReadinessTarget, ReadinessWaiter, WaitState

TARGET = ReadinessTarget("cl1", "kube-system", WorkloadKind.DAEMONSET, "weave-net")
LOGGER = logging.getLogger("armada.test")


class _Clock:
    def __init__(self):
        self.now = 0.0

    def monotonic(self):
        return self.now

    def sleep(self, seconds, interrupt=None):
        self.now += seconds


def _waiter(ready_on_poll, timeout, interval):
    clock = _Clock()
    poll_times = []

    def probe(target):
        poll_times.append(clock.now)
        return Observation(len(poll_times) >= ready_on_poll, f"poll {len(poll_times)}")

    waiter = ReadinessWaiter(TARGET, probe, timeout, interval, clock, LOGGER)
    return waiter, clock, poll_times


@given(
    timeout=st.integers(min_value=1, max_value=600),
    interval=st.integers(min_value=1, max_value=60),
    ready_on_poll=st.integers(min_value=1, max_value=200),
)
def test_waiter_is_ready_or_times_out_and_never_polls_after_deadline(timeout, interval, ready_on_poll):
    waiter, clock, poll_times = _waiter(ready_on_poll, timeout, interval)
    max_polls = math.ceil(timeout / interval)

    if ready_on_poll <= max_polls:
        assert waiter.run() is WaitState.READY
        assert waiter.polls == ready_on_poll
        assert clock.now < timeout
    else:
        with pytest.raises(ReadinessTimeoutError):
            waiter.run()
        assert waiter.state is WaitState.TIMED_OUT
        assert waiter.polls == max_polls
        assert clock.now == timeout

    assert all(t < timeout for t in poll_times)
    # Polls happen on the fixed interval.
    assert poll_times == [i * interval for i in range(len(poll_times))]
