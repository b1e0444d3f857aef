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

"""Configuration classes and the cluster specification model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from armada.constants import (
    DEFAULT_CLUSTER_NAME_BASE,
    DEFAULT_CLUSTER_WAIT_SECONDS,
    DEFAULT_DOCKER_NETWORK,
    DEFAULT_NUM_CLUSTERS,
    DEFAULT_NUM_WORKERS,
    DEFAULT_POD_CIDR_BASE,
    DEFAULT_POD_CIDR_MASK,
    DEFAULT_RESOURCE_WAIT_SECONDS,
    DEFAULT_SERVICE_CIDR_BASE,
    DEFAULT_SERVICE_CIDR_MASK,
    KIND_CONFIG_SUFFIX,
    KUBECONFIG_PREFIX,
    POD_POLL_INTERVAL_SECONDS,
    REL_CONTAINER_KUBECONFIG_DIR,
    REL_KIND_CONFIG_DIR,
    REL_LOCAL_KUBECONFIG_DIR,
    REL_LOGS_DIR,
    ROLLOUT_POLL_INTERVAL_SECONDS,
    CniKind,
    KubeVersionProfile,
)


# ============================================================================
# Configuration classes
# ============================================================================

class ArmadaSettings(BaseSettings):
    """Tool-wide defaults, auto-loaded from ARMADA_* env vars.

    Attributes:
        cluster_name_base: Prefix every cluster name is built from.
        pod_cidr_base: Network address the per-cluster pod subnets are offset from.
        pod_cidr_mask: Prefix length of every pod subnet.
        service_cidr_base: Network address the per-cluster service subnets are offset from.
        service_cidr_mask: Prefix length of every service subnet.
        num_workers: Worker nodes per cluster.
        output_dir: Root directory for generated configs, kubeconfigs and logs.
        kube_dir: Directory kind writes the raw kubeconfigs into.
        wait_timeout: Seconds to wait for a workload before giving up.
        rollout_poll_interval: Seconds between Deployment/DaemonSet polls.
        pod_poll_interval: Seconds between pod-set polls.
        docker_network: Docker network whose address goes into the container kubeconfig.
        default_cluster_wait: Seconds kind waits for the control plane with the default CNI.
    """

    model_config = SettingsConfigDict(env_prefix="ARMADA_", extra="ignore")

    cluster_name_base: str = Field(default=DEFAULT_CLUSTER_NAME_BASE, pattern=r"^[a-z][a-z0-9]*$")
    pod_cidr_base: str = DEFAULT_POD_CIDR_BASE
    pod_cidr_mask: int = Field(default=DEFAULT_POD_CIDR_MASK, ge=8, le=30)
    service_cidr_base: str = DEFAULT_SERVICE_CIDR_BASE
    service_cidr_mask: int = Field(default=DEFAULT_SERVICE_CIDR_MASK, ge=8, le=30)
    num_workers: int = Field(default=DEFAULT_NUM_WORKERS, ge=0, le=50)
    output_dir: Path = Path("output")
    kube_dir: Path = Field(default_factory=lambda: Path.home() / ".kube")
    wait_timeout: float = Field(default=DEFAULT_RESOURCE_WAIT_SECONDS, gt=0)
    rollout_poll_interval: float = Field(default=ROLLOUT_POLL_INTERVAL_SECONDS, gt=0)
    pod_poll_interval: float = Field(default=POD_POLL_INTERVAL_SECONDS, gt=0)
    docker_network: str = DEFAULT_DOCKER_NETWORK
    default_cluster_wait: float = Field(default=DEFAULT_CLUSTER_WAIT_SECONDS, ge=0)

    @property
    def kind_config_dir(self) -> Path:
        return self.output_dir / REL_KIND_CONFIG_DIR

    @property
    def local_kubeconfig_dir(self) -> Path:
        return self.output_dir / REL_LOCAL_KUBECONFIG_DIR

    @property
    def container_kubeconfig_dir(self) -> Path:
        return self.output_dir / REL_CONTAINER_KUBECONFIG_DIR

    @property
    def logs_dir(self) -> Path:
        return self.output_dir / REL_LOGS_DIR

    def kind_config_path(self, name: str) -> Path:
        return self.kind_config_dir / f"{name}{KIND_CONFIG_SUFFIX}"

    def raw_kubeconfig_path(self, name: str) -> Path:
        return self.kube_dir / f"{KUBECONFIG_PREFIX}{name}"

    def local_kubeconfig_path(self, name: str) -> Path:
        return self.local_kubeconfig_dir / f"{KUBECONFIG_PREFIX}{name}"

    def container_kubeconfig_path(self, name: str) -> Path:
        return self.container_kubeconfig_dir / f"{KUBECONFIG_PREFIX}{name}"


# ============================================================================
# Create options and cluster specification
# ============================================================================

@dataclass(frozen=True)
class CreateFlags:
    """Options for one ``create clusters`` invocation.

    Attributes:
        num_clusters: Number of clusters in the fleet.
        image: Node image to boot the clusters with, or empty for kind's default.
        cni: Pod network to install.
        tiller: Whether to deploy tiller once the cluster is ready.
        overlap: Whether every cluster gets the same pod and service subnets.
        retain: Whether kind keeps the node containers when creation fails.
        wait: Seconds kind waits for the control plane (default CNI only).
        debug: Whether debug logging was requested.
    """

    num_clusters: int = DEFAULT_NUM_CLUSTERS
    image: str = ""
    cni: CniKind = CniKind.KINDNET
    tiller: bool = False
    overlap: bool = False
    retain: bool = True
    wait: float = DEFAULT_CLUSTER_WAIT_SECONDS
    debug: bool = False


@dataclass(frozen=True)
class ClusterSpec:
    """Fully resolved parameters for one cluster of a fleet.

    Attributes:
        index: 1-based ordinal of the cluster within the fleet.
        name: Cluster name, ``<base><index>``.
        cni: Pod network installed in the cluster.
        pod_subnet: Pod CIDR.
        service_subnet: Service CIDR.
        dns_domain: Cluster DNS domain.
        kube_version_profile: kubeadm schema used in the kind config.
        worker_count: Number of worker nodes.
        wait_for_ready: Seconds kind waits for the control plane, zero for non-default CNIs.
        node_image: Node image tag, or empty for kind's default.
        retain_on_failure: Whether kind keeps the nodes when creation fails.
        deploy_optional_component: Whether tiller gets deployed.
        kubeconfig_path: Where kind writes the raw kubeconfig.
    """

    index: int
    name: str
    cni: CniKind
    pod_subnet: str
    service_subnet: str
    dns_domain: str
    kube_version_profile: KubeVersionProfile
    worker_count: int
    wait_for_ready: float
    node_image: str
    retain_on_failure: bool
    deploy_optional_component: bool
    kubeconfig_path: Path

    def template_context(self) -> dict:
        """Values exposed to the manifest templates."""
        return {
            "name": self.name,
            "cni": self.cni.value,
            "default_cni": self.cni.is_default,
            "pod_subnet": self.pod_subnet,
            "service_subnet": self.service_subnet,
            "dns_domain": self.dns_domain,
            "kubeadm_api_version": self.kube_version_profile.value,
            "worker_count": self.worker_count,
        }
