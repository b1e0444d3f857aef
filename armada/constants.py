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

"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"


def load_dependencies() -> dict:
    """Load pinned images and versions from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = PACKAGE_DIR / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


class CniKind(str, Enum):
    """Pod network implementations a cluster can be created with."""

    KINDNET = "kindnet"
    WEAVE = "weave"
    FLANNEL = "flannel"
    CALICO = "calico"

    @property
    def is_default(self) -> bool:
        return self is CniKind.KINDNET


class KubeVersionProfile(str, Enum):
    """kubeadm config schema used in the rendered kind config."""

    LEGACY = "kubeadm.k8s.io/v1beta1"
    CURRENT = "kubeadm.k8s.io/v1beta2"


class WorkloadKind(str, Enum):
    DEPLOYMENT = "Deployment"
    DAEMONSET = "DaemonSet"
    PODSET = "PodSet"


# -- Version profile --
LEGACY_PROFILE_CUTOFF = "1.15"
IMAGE_VERSION_SEPARATOR = ":v"

# -- Cluster defaults --
DEFAULT_CLUSTER_NAME_BASE = "cl"
DEFAULT_POD_CIDR_BASE = "10.0.0.0"
DEFAULT_POD_CIDR_MASK = 14
DEFAULT_SERVICE_CIDR_BASE = "100.0.0.0"
DEFAULT_SERVICE_CIDR_MASK = 16
DEFAULT_NUM_WORKERS = 2
DEFAULT_NUM_CLUSTERS = 2
DNS_DOMAIN_SUFFIX = ".local"
POD_SUBNET_STRIDE = 4
SERVICE_SUBNET_STRIDE = 1

# -- Timing (seconds) --
DEFAULT_CLUSTER_WAIT_SECONDS = 300
DEFAULT_RESOURCE_WAIT_SECONDS = 300
ROLLOUT_POLL_INTERVAL_SECONDS = 10
POD_POLL_INTERVAL_SECONDS = 30

# -- Relative output paths --
REL_KIND_CONFIG_DIR = "kind-clusters"
REL_LOCAL_KUBECONFIG_DIR = "kind-config/local-dev"
REL_CONTAINER_KUBECONFIG_DIR = "kind-config/container"
REL_LOGS_DIR = "logs"
KIND_CONFIG_SUFFIX = "-kind-config.yaml"
KUBECONFIG_PREFIX = "kind-config-"

# -- Networking --
API_SERVER_PORT = 6443
CONTROL_PLANE_SUFFIX = "-control-plane"
DEFAULT_DOCKER_NETWORK = "kind"
BRIDGE_DRIVER = "bridge"
OUTBOUND_PROBE_ADDRESS = ("1.1.1.1", 80)

# -- Namespaces --
NS_KUBE_SYSTEM = "kube-system"
NS_DEFAULT = "default"

# -- Workloads waited on --
COREDNS_DEPLOYMENT = "coredns"
TILLER_DEPLOYMENT = "tiller-deploy"
NETSHOOT_DAEMONSET = "netshoot"
NETSHOOT_HOST_NET_DAEMONSET = "netshoot-host-net"
NGINX_DEMO_SELECTOR = "app=nginx-demo"

CNI_DAEMONSETS = {
    CniKind.WEAVE: "weave-net",
    CniKind.FLANNEL: "kube-flannel-ds",
    CniKind.CALICO: "calico-node",
}

# -- Templates --
TPL_CLUSTER_CONFIG = "cluster-config.yaml.j2"
TPL_CALICO_CRDS = "calico-crd.yaml.j2"
TPL_TILLER = "tiller-deployment.yaml.j2"
TPL_NETSHOOT = "netshoot-daemonset.yaml.j2"
TPL_NETSHOOT_HOST = "netshoot-daemonset-host.yaml.j2"
TPL_NGINX_DEMO = "nginx-demo-daemonset.yaml.j2"

CNI_TEMPLATES = {
    CniKind.WEAVE: "weave-daemonset.yaml.j2",
    CniKind.FLANNEL: "flannel-daemonset.yaml.j2",
    CniKind.CALICO: "calico-daemonset.yaml.j2",
}

# -- Kinds accepted per manifest --
CNI_ALLOWED_KINDS = {
    CniKind.WEAVE: frozenset({
        "ServiceAccount", "Role", "RoleBinding", "ClusterRole", "ClusterRoleBinding", "DaemonSet",
    }),
    CniKind.FLANNEL: frozenset({
        "PodSecurityPolicy", "ServiceAccount", "ClusterRole", "ClusterRoleBinding", "ConfigMap", "DaemonSet",
    }),
    CniKind.CALICO: frozenset({
        "ServiceAccount", "ClusterRole", "ClusterRoleBinding", "ConfigMap", "DaemonSet", "Deployment",
    }),
}
CRD_ALLOWED_KINDS = frozenset({"CustomResourceDefinition"})
TILLER_ALLOWED_KINDS = frozenset({"ServiceAccount", "ClusterRoleBinding", "Deployment"})
DEBUG_ALLOWED_KINDS = frozenset({"DaemonSet", "Service"})
