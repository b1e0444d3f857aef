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

"""Exception hierarchy for fleet provisioning."""

from __future__ import annotations

from collections.abc import Mapping


class ArmadaError(Exception):
    """Base exception for all armada errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Main error message.
            details: Additional context or a suggested fix.
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message, appending details when present."""
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class ConfigurationError(ArmadaError):
    """Invalid user input: malformed image tag, unknown CNI, bad duration."""


class ProvisioningError(ArmadaError):
    """The bring-up engine or the container runtime failed for a cluster."""

    def __init__(self, cluster: str, message: str, details: str | None = None) -> None:
        self.cluster = cluster
        super().__init__(f"{cluster}: {message}", details)


class ApplyError(ArmadaError):
    """A manifest object could not be decoded or was rejected by the API server."""

    def __init__(self, cluster: str, kind: str, name: str, message: str) -> None:
        self.cluster = cluster
        self.kind = kind
        self.name = name
        super().__init__(f"{cluster}: failed to create {kind} {name!r}: {message}")


class ReadinessTimeoutError(ArmadaError):
    """A workload was still not ready when its deadline elapsed."""

    def __init__(self, cluster: str, target: str, timeout: float, last_observation: str) -> None:
        self.cluster = cluster
        self.target = target
        self.timeout = timeout
        self.last_observation = last_observation
        super().__init__(
            f"{cluster}: {target} still not ready after {timeout:g}s",
            f"last observation: {last_observation}",
        )


class CleanupError(ArmadaError):
    """Destroying a cluster or removing its files failed."""

    def __init__(self, cluster: str, message: str) -> None:
        self.cluster = cluster
        super().__init__(f"{cluster}: {message}")


class FleetError(ArmadaError):
    """At least one cluster failed during a fleet phase.

    Attributes:
        phase: Name of the phase that failed.
        failures: Mapping of cluster name to the exception it raised.
    """

    def __init__(self, phase: str, failures: Mapping[str, BaseException]) -> None:
        self.phase = phase
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        details = "\n".join(f"{name}: {err}" for name, err in sorted(self.failures.items()))
        super().__init__(f"{phase} failed for cluster(s): {names}", details)
