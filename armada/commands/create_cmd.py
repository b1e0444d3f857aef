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

"""Create subcommands (clusters)."""

from __future__ import annotations

import typer

from armada.commands import build_orchestrator
from armada.config import CreateFlags
from armada.constants import DEFAULT_NUM_CLUSTERS, CniKind, dep_value
from armada.exceptions import ConfigurationError
from armada.utils import parse_duration

app = typer.Typer(help="Create clusters.")


def select_cni(weave: bool, flannel: bool, calico: bool) -> CniKind:
    """Map the mutually exclusive CNI flags to a CniKind.

    Raises:
        ConfigurationError: If more than one CNI flag is set.
    """
    requested = ((CniKind.WEAVE, weave), (CniKind.FLANNEL, flannel), (CniKind.CALICO, calico))
    chosen = [cni for cni, enabled in requested if enabled]
    if len(chosen) > 1:
        names = ", ".join(f"--{cni.value}" for cni in chosen)
        raise ConfigurationError(f"only one CNI can be selected, got {names}")
    return chosen[0] if chosen else CniKind.KINDNET


@app.command("clusters")
def clusters(
    num: int = typer.Option(DEFAULT_NUM_CLUSTERS, "--num", "-n", min=1, help="Number of clusters to create"),
    image: str = typer.Option("", "--image", "-i", help=f"Node image, e.g. {dep_value('kind_node', 'default_image')}"),
    weave: bool = typer.Option(False, "--weave", "-w", help="Deploy with weave"),
    flannel: bool = typer.Option(False, "--flannel", "-f", help="Deploy with flannel"),
    calico: bool = typer.Option(False, "--calico", "-c", help="Deploy with calico"),
    tiller: bool = typer.Option(False, "--tiller", "-t", help="Deploy tiller"),
    overlap: bool = typer.Option(False, "--overlap", "-o", help="Give every cluster the same pod and service subnets"),
    retain: bool = typer.Option(True, "--retain/--no-retain", help="Keep node containers when creation fails"),
    wait: str | None = typer.Option(None, "--wait", help="Control-plane wait with the default CNI, e.g. 5m"),
    debug: bool = typer.Option(False, "--debug", "-v", help="Set log level to debug"),
) -> None:
    """Create a fleet of kind clusters and wait until they are ready."""
    cni = select_cni(weave, flannel, calico)
    orchestrator = build_orchestrator(debug)
    wait_seconds = parse_duration(wait) if wait is not None else orchestrator.settings.default_cluster_wait
    flags = CreateFlags(
        num_clusters=num,
        image=image,
        cni=cni,
        tiller=tiller,
        overlap=overlap,
        retain=retain,
        wait=wait_seconds,
        debug=debug,
    )
    orchestrator.create(flags)
