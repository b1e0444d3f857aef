# /*
# Copyright 2026 The Armada Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Deadline-bounded polling of workload readiness.

A waiter observes one target on a fixed interval until the observation
reports ready, the deadline passes, or the waiter is cancelled. Time is
read through an injected clock so the loop can run without real sleeps.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import kubernetes.client
import urllib3
from kubernetes.client.exceptions import ApiException
from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception_type, retry_if_result

from armada.constants import WorkloadKind
from armada.exceptions import ReadinessTimeoutError

RUNNING_PHASE_SELECTOR = "status.phase=Running"


class Clock(Protocol):
    def monotonic(self) -> float: ...

    def sleep(self, seconds: float, interrupt: threading.Event | None = None) -> None: ...


class SystemClock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, interrupt: threading.Event | None = None) -> None:
        """Sleep for *seconds*, returning early once *interrupt* is set."""
        if interrupt is None:
            time.sleep(seconds)
        else:
            interrupt.wait(seconds)


@dataclass(frozen=True)
class ReadinessTarget:
    """A workload to wait for.

    Attributes:
        cluster: Cluster the workload lives in.
        namespace: Workload namespace.
        kind: Deployment, DaemonSet, or a label-selected pod set.
        name: Workload name, or a display name for pod sets.
        selector: Label selector for pod sets.
        desired: Running pods required for a pod set; None matches the node count.
    """

    cluster: str
    namespace: str
    kind: WorkloadKind
    name: str
    selector: str | None = None
    desired: int | None = None

    def describe(self) -> str:
        if self.kind is WorkloadKind.PODSET:
            return f"pods {self.selector!r} in {self.namespace}"
        return f"{self.kind.value} {self.namespace}/{self.name}"


@dataclass(frozen=True)
class Observation:
    ready: bool
    detail: str


Probe = Callable[[ReadinessTarget], Observation]


class WaitState(str, Enum):
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed-out"
    CANCELLED = "cancelled"


# ============================================================================
# Probes
# ============================================================================

def deployment_probe(apps: kubernetes.client.AppsV1Api) -> Probe:
    """Ready when ``status.readyReplicas`` equals ``spec.replicas``."""
    def probe(target: ReadinessTarget) -> Observation:
        deployment = apps.read_namespaced_deployment_status(target.name, target.namespace)
        desired = deployment.spec.replicas or 0
        ready = deployment.status.ready_replicas or 0
        return Observation(ready == desired, f"{ready}/{desired} replicas ready")
    return probe


def daemonset_probe(apps: kubernetes.client.AppsV1Api) -> Probe:
    """Ready when every scheduled pod is ready and scheduling has begun."""
    def probe(target: ReadinessTarget) -> Observation:
        status = apps.read_namespaced_daemon_set_status(target.name, target.namespace).status
        scheduled = status.current_number_scheduled or 0
        desired = status.desired_number_scheduled or 0
        ready = status.number_ready or 0
        return Observation(
            scheduled > 0 and ready == desired,
            f"{ready}/{desired} pods ready, {scheduled} scheduled",
        )
    return probe


def podset_probe(core: kubernetes.client.CoreV1Api) -> Probe:
    """Ready when the number of Running pods matching the selector equals the desired count."""
    def probe(target: ReadinessTarget) -> Observation:
        desired = target.desired
        if desired is None:
            desired = len(core.list_node().items)
        pods = core.list_namespaced_pod(
            target.namespace,
            label_selector=target.selector,
            field_selector=RUNNING_PHASE_SELECTOR,
        )
        running = len(pods.items)
        return Observation(running == desired, f"{running}/{desired} pods running")
    return probe


def make_probe(kind: WorkloadKind, api_client: kubernetes.client.ApiClient) -> Probe:
    if kind is WorkloadKind.DEPLOYMENT:
        return deployment_probe(kubernetes.client.AppsV1Api(api_client))
    if kind is WorkloadKind.DAEMONSET:
        return daemonset_probe(kubernetes.client.AppsV1Api(api_client))
    return podset_probe(kubernetes.client.CoreV1Api(api_client))


# ============================================================================
# Waiter
# ============================================================================

class ReadinessWaiter:
    """Poll one target until ready, timed out, or cancelled.

    Args:
        target: Workload to observe.
        probe: Callable returning the current observation of *target*.
        timeout: Seconds before the waiter gives up.
        interval: Seconds between polls.
        clock: Time source.
        logger: Logger handed down by the orchestrator.
    """

    def __init__(
        self,
        target: ReadinessTarget,
        probe: Probe,
        timeout: float,
        interval: float,
        clock: Clock,
        logger: logging.Logger,
    ) -> None:
        self.target = target
        self._probe = probe
        self._timeout = timeout
        self._interval = interval
        self._clock = clock
        self._logger = logger
        self._cancelled = threading.Event()
        self.state = WaitState.POLLING
        self.polls = 0
        self._last = "no observation"

    def cancel(self) -> None:
        self._cancelled.set()

    def _attempt(self, deadline: float) -> Observation | None:
        if self._cancelled.is_set() or self._clock.monotonic() >= deadline:
            return None
        try:
            return self._probe(self.target)
        finally:
            self.polls += 1

    def _record(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome.failed:
            # The API server may not be serving yet; keep polling until the deadline.
            self._last = f"API error: {outcome.exception()}"
        else:
            self._last = outcome.result().detail
        self._logger.debug(
            "%s: still waiting for %s: %s", self.target.cluster, self.target.describe(), self._last
        )

    def _sleep(self, seconds: float) -> None:
        self._clock.sleep(seconds, interrupt=self._cancelled)

    def run(self) -> WaitState:
        """Run the poll loop to completion.

        Returns:
            READY when the target became ready, CANCELLED when cancelled first.

        Raises:
            ReadinessTimeoutError: If the deadline passed before the target was ready.
        """
        cluster, what = self.target.cluster, self.target.describe()
        deadline = self._clock.monotonic() + self._timeout
        self._last = "no observation"
        self._logger.info("%s: waiting up to %gs for %s", cluster, self._timeout, what)

        retrying = Retrying(
            sleep=self._sleep,
            stop=lambda rs: self._cancelled.is_set() or self._clock.monotonic() >= deadline,
            wait=lambda rs: min(self._interval, max(deadline - self._clock.monotonic(), 0.0)),
            retry=(
                retry_if_result(lambda obs: obs is not None and not obs.ready)
                | retry_if_exception_type((ApiException, urllib3.exceptions.HTTPError))
            ),
            after=self._record,
        )
        try:
            observation = retrying(self._attempt, deadline)
        except RetryError:
            observation = None

        if observation is not None:
            self.state = WaitState.READY
            self._logger.info("%s: ✔ %s is ready", cluster, what)
            return self.state

        if self._cancelled.is_set():
            self.state = WaitState.CANCELLED
            self._logger.debug("%s: stopped waiting for %s", cluster, what)
            return self.state

        self.state = WaitState.TIMED_OUT
        raise ReadinessTimeoutError(cluster, what, self._timeout, self._last)


def wait_for(
    target: ReadinessTarget,
    probe: Probe,
    timeout: float,
    interval: float,
    clock: Clock,
    logger: logging.Logger,
) -> WaitState:
    return ReadinessWaiter(target, probe, timeout, interval, clock, logger).run()
