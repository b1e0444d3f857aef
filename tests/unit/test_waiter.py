"""Unit tests for readiness probes and the waiter state machine."""

import threading
import time
from types import SimpleNamespace

import pytest
import urllib3
from kubernetes.client.exceptions import ApiException

from armada.constants import WorkloadKind
from armada.exceptions import ReadinessTimeoutError
from armada.waiter import (
    Observation,
    ReadinessTarget,
    ReadinessWaiter,
    SystemClock,
    WaitState,
    daemonset_probe,
    deployment_probe,
    podset_probe,
)

DS_TARGET = ReadinessTarget("cl1", "kube-system", WorkloadKind.DAEMONSET, "calico-node")
DEPLOY_TARGET = ReadinessTarget("cl1", "kube-system", WorkloadKind.DEPLOYMENT, "coredns")
POD_TARGET = ReadinessTarget("cl1", "default", WorkloadKind.PODSET, "nginx-demo", selector="app=nginx-demo")


class _Apps:
    def __init__(self, deployment=None, daemonset=None):
        self.deployment = deployment
        self.daemonset = daemonset

    def read_namespaced_deployment_status(self, name, namespace):
        return self.deployment

    def read_namespaced_daemon_set_status(self, name, namespace):
        return self.daemonset


class _Core:
    def __init__(self, nodes, running):
        self.nodes = nodes
        self.running = running
        self.queries = []

    def list_node(self):
        return SimpleNamespace(items=[object()] * self.nodes)

    def list_namespaced_pod(self, namespace, label_selector=None, field_selector=None):
        self.queries.append((namespace, label_selector, field_selector))
        return SimpleNamespace(items=[object()] * self.running)


def _deployment(replicas, ready):
    return SimpleNamespace(spec=SimpleNamespace(replicas=replicas), status=SimpleNamespace(ready_replicas=ready))


def _daemonset(scheduled, desired, ready):
    return SimpleNamespace(
        status=SimpleNamespace(
            current_number_scheduled=scheduled,
            desired_number_scheduled=desired,
            number_ready=ready,
        )
    )


@pytest.mark.parametrize(
    ("replicas", "ready", "expected"),
    [(2, 2, True), (2, 1, False), (2, None, False), (1, 1, True)],
)
def test_deployment_probe(replicas, ready, expected):
    probe = deployment_probe(_Apps(deployment=_deployment(replicas, ready)))
    assert probe(DEPLOY_TARGET).ready is expected


@pytest.mark.parametrize(
    ("scheduled", "desired", "ready", "expected"),
    [
        (3, 3, 3, True),
        (3, 3, 2, False),
        # Nothing scheduled yet must never read as ready.
        (0, 0, 0, False),
        (None, None, None, False),
    ],
)
def test_daemonset_probe(scheduled, desired, ready, expected):
    probe = daemonset_probe(_Apps(daemonset=_daemonset(scheduled, desired, ready)))
    assert probe(DS_TARGET).ready is expected


def test_podset_probe_matches_node_count_by_default():
    core = _Core(nodes=3, running=3)
    assert podset_probe(core)(POD_TARGET).ready is True
    assert core.queries == [("default", "app=nginx-demo", "status.phase=Running")]


def test_podset_probe_uses_explicit_desired_count():
    target = ReadinessTarget("cl1", "default", WorkloadKind.PODSET, "demo", selector="app=demo", desired=2)
    assert podset_probe(_Core(nodes=3, running=2))(target).ready is True
    assert podset_probe(_Core(nodes=3, running=3))(target).ready is False


def test_waiter_returns_on_first_ready_poll(fake_clock, logger):
    waiter = ReadinessWaiter(DS_TARGET, lambda t: Observation(True, "ok"), 300, 10, fake_clock, logger)
    assert waiter.run() is WaitState.READY
    assert waiter.polls == 1
    assert fake_clock.sleeps == []


def test_waiter_timeout_reports_last_observation(fake_clock, logger):
    waiter = ReadinessWaiter(DS_TARGET, lambda t: Observation(False, "1/3 pods ready"), 25, 10, fake_clock, logger)

    with pytest.raises(ReadinessTimeoutError) as exc_info:
        waiter.run()

    assert waiter.polls == 3
    assert fake_clock.sleeps == [10, 10, 5]
    assert "still not ready after 25s" in str(exc_info.value)
    assert "1/3 pods ready" in str(exc_info.value)
    assert exc_info.value.cluster == "cl1"


def test_api_errors_count_as_not_ready(fake_clock, logger):
    answers = iter([ApiException(status=503, reason="Unavailable"), Observation(True, "ok")])

    def probe(target):
        answer = next(answers)
        if isinstance(answer, Exception):
            raise answer
        return answer

    waiter = ReadinessWaiter(DEPLOY_TARGET, probe, 60, 10, fake_clock, logger)
    assert waiter.run() is WaitState.READY
    assert waiter.polls == 2


def test_cancelled_waiter_never_polls(fake_clock, logger):
    waiter = ReadinessWaiter(DS_TARGET, lambda t: pytest.fail("polled"), 60, 10, fake_clock, logger)
    waiter.cancel()
    assert waiter.run() is WaitState.CANCELLED
    assert waiter.polls == 0


def test_cancel_during_polling_stops_the_loop(fake_clock, logger):
    holder = {}

    def probe(target):
        if holder["waiter"].polls == 1:
            holder["waiter"].cancel()
        return Observation(False, "pending")

    waiter = ReadinessWaiter(DS_TARGET, probe, 600, 10, fake_clock, logger)
    holder["waiter"] = waiter

    assert waiter.run() is WaitState.CANCELLED
    assert waiter.polls == 2


def test_timeout_after_api_errors_reports_the_error(fake_clock, logger):
    def probe(target):
        raise ApiException(status=503, reason="Unavailable")

    waiter = ReadinessWaiter(DEPLOY_TARGET, probe, 20, 10, fake_clock, logger)

    with pytest.raises(ReadinessTimeoutError) as exc_info:
        waiter.run()

    assert waiter.polls == 2
    assert waiter.state is WaitState.TIMED_OUT
    assert "API error" in str(exc_info.value)


def test_transport_errors_count_as_not_ready(fake_clock, logger):
    answers = iter([urllib3.exceptions.ProtocolError("connection reset"), Observation(True, "ok")])

    def probe(target):
        answer = next(answers)
        if isinstance(answer, Exception):
            raise answer
        return answer

    waiter = ReadinessWaiter(DS_TARGET, probe, 60, 10, fake_clock, logger)
    assert waiter.run() is WaitState.READY
    assert fake_clock.sleeps == [10]


def test_unexpected_errors_propagate(fake_clock, logger):
    def probe(target):
        raise ValueError("bad status payload")

    waiter = ReadinessWaiter(DS_TARGET, probe, 60, 10, fake_clock, logger)
    with pytest.raises(ValueError, match="bad status payload"):
        waiter.run()
    assert waiter.polls == 1


def test_slow_poll_past_deadline_times_out_without_sleeping(fake_clock, logger):
    def probe(target):
        fake_clock.now += 30
        return Observation(False, "0/3 pods ready")

    waiter = ReadinessWaiter(DS_TARGET, probe, 25, 10, fake_clock, logger)

    with pytest.raises(ReadinessTimeoutError, match="0/3 pods ready"):
        waiter.run()

    assert waiter.polls == 1
    assert fake_clock.sleeps == []


def test_system_clock_sleep_returns_once_interrupted():
    interrupt = threading.Event()
    interrupt.set()
    started = time.monotonic()
    SystemClock().sleep(30, interrupt=interrupt)
    assert time.monotonic() - started < 5


def test_cancel_interrupts_a_sleeping_waiter(logger):
    polled = threading.Event()

    def probe(target):
        polled.set()
        return Observation(False, "pending")

    waiter = ReadinessWaiter(DS_TARGET, probe, 600, 300, SystemClock(), logger)
    result = {}
    worker = threading.Thread(target=lambda: result.setdefault("state", waiter.run()))
    started = time.monotonic()
    worker.start()

    assert polled.wait(5)
    waiter.cancel()
    worker.join(5)

    assert not worker.is_alive()
    assert result["state"] is WaitState.CANCELLED
    assert waiter.polls == 1
    assert time.monotonic() - started < 5
