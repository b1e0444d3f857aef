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

"""Host and container kubeconfig variants derived from kind's raw kubeconfig."""

from __future__ import annotations

import copy
import ipaddress
import os
import socket
from pathlib import Path

import yaml

from armada.config import ArmadaSettings
from armada.constants import API_SERVER_PORT, OUTBOUND_PROBE_ADDRESS
from armada.exceptions import ProvisioningError
from armada.runtime import ContainerRuntime


def rename_identity(doc: dict, cluster_name: str) -> dict:
    """Return a copy of *doc* with every cluster, user and context named *cluster_name*."""
    renamed = copy.deepcopy(doc)
    for entry in renamed.get("clusters") or []:
        entry["name"] = cluster_name
    for entry in renamed.get("users") or []:
        entry["name"] = cluster_name
    for entry in renamed.get("contexts") or []:
        entry["name"] = cluster_name
        context = entry.setdefault("context", {})
        context["cluster"] = cluster_name
        context["user"] = cluster_name
    renamed["current-context"] = cluster_name
    return renamed


def with_server(doc: dict, server: str) -> dict:
    rewritten = copy.deepcopy(doc)
    for entry in rewritten.get("clusters") or []:
        entry.setdefault("cluster", {})["server"] = server
    return rewritten


def _write(path: Path, doc: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        # O_CREAT leaves the mode of an existing file untouched.
        os.fchmod(fd, 0o600)
        yaml.safe_dump(doc, f, sort_keys=False)


def derive(
    cluster_name: str,
    source_path: Path,
    internal_address: str,
    settings: ArmadaSettings,
) -> tuple[Path, Path]:
    """Write the host and container kubeconfig variants for one cluster.

    Both variants carry the cluster name as cluster, user, context and
    current-context. The host variant keeps the source server address; the
    container variant points at ``https://<internal_address>:6443``.

    Args:
        cluster_name: Name every identity field is rewritten to.
        source_path: Raw kubeconfig written by kind.
        internal_address: Control-plane container address on the cluster network.
        settings: Provides the output locations.

    Returns:
        Paths of the (host, container) variants.

    Raises:
        ProvisioningError: If the source cannot be read or the variants cannot be written.
    """
    try:
        with open(source_path) as f:
            source = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as err:
        raise ProvisioningError(cluster_name, f"failed to read kubeconfig {source_path}", str(err)) from err
    if not isinstance(source, dict):
        raise ProvisioningError(cluster_name, f"kubeconfig {source_path} is not a mapping")

    host_doc = rename_identity(source, cluster_name)
    container_doc = with_server(host_doc, f"https://{internal_address}:{API_SERVER_PORT}")

    host_path = settings.local_kubeconfig_path(cluster_name)
    container_path = settings.container_kubeconfig_path(cluster_name)
    try:
        _write(host_path, host_doc)
        _write(container_path, container_doc)
    except OSError as err:
        raise ProvisioningError(cluster_name, "failed to write kubeconfig variants", str(err)) from err
    return host_path, container_path


def outbound_local_address() -> str:
    """Return the local address the host routes outbound traffic from.

    Connecting a UDP socket sends no packets; it only selects a route.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.connect(OUTBOUND_PROBE_ADDRESS)
        return sock.getsockname()[0]


def runs_inside_bridge_network(local_address: str, subnets: list[str]) -> bool:
    address = ipaddress.ip_address(local_address)
    for subnet in subnets:
        try:
            network = ipaddress.ip_network(subnet, strict=False)
        except ValueError:
            continue
        if address.version == network.version and address in network:
            return True
    return False


def resolve_active_path(
    cluster_name: str,
    settings: ArmadaSettings,
    runtime: ContainerRuntime,
    local_address: str | None = None,
) -> Path:
    """Pick the kubeconfig variant that works from where this process runs.

    Args:
        cluster_name: Cluster whose kubeconfig is wanted.
        settings: Provides the output locations.
        runtime: Container runtime listing the bridge networks.
        local_address: Caller's outbound address; detected when omitted.

    Returns:
        The container variant when the caller sits on a bridge network the
        clusters share, otherwise the host variant.
    """
    if local_address is None:
        try:
            local_address = outbound_local_address()
        except OSError:
            # No route out means no shared bridge network either.
            return settings.local_kubeconfig_path(cluster_name)
    if runs_inside_bridge_network(local_address, runtime.bridge_subnets()):
        return settings.container_kubeconfig_path(cluster_name)
    return settings.local_kubeconfig_path(cluster_name)
