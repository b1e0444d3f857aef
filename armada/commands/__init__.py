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

"""Typer sub-applications, one per verb."""

from __future__ import annotations

from armada import configure_logging
from armada.config import ArmadaSettings
from armada.engine import KindEngine
from armada.lifecycle import ClusterLifecycle
from armada.orchestrator import FleetOrchestrator
from armada.runtime import DockerRuntime
from armada.utils import require_command


def build_orchestrator(debug: bool = False) -> FleetOrchestrator:
    """Wire the orchestrator against kind, Docker and the Kubernetes API.

    Raises:
        ConfigurationError: If the kind binary is not on PATH.
    """
    logger = configure_logging(debug)
    require_command("kind")
    settings = ArmadaSettings()
    lifecycle = ClusterLifecycle(settings, KindEngine(), DockerRuntime(settings.docker_network), logger)
    return FleetOrchestrator(settings, lifecycle, logger)
