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

"""Per-cluster parameter planning: names, subnets, kubeadm schema."""

from __future__ import annotations

import ipaddress
import logging

from packaging.version import InvalidVersion, Version

from armada.config import ArmadaSettings, ClusterSpec, CreateFlags
from armada.constants import (
    DNS_DOMAIN_SUFFIX,
    IMAGE_VERSION_SEPARATOR,
    LEGACY_PROFILE_CUTOFF,
    POD_SUBNET_STRIDE,
    SERVICE_SUBNET_STRIDE,
    KubeVersionProfile,
)
from armada.engine import BringUpEngine
from armada.exceptions import ConfigurationError


def cluster_name(index: int, settings: ArmadaSettings) -> str:
    return f"{settings.cluster_name_base}{index}"


def offset_subnet(base: str, offset: int, mask: int) -> str:
    """Add *offset* to the second octet of *base*, wrapping at the octet boundary.

    Args:
        base: Dotted-quad IPv4 network address.
        offset: Amount added to the second octet.
        mask: Prefix length appended to the result.

    Returns:
        CIDR string such as ``10.4.0.0/14``.
    """
    octets = bytearray(ipaddress.IPv4Address(base).packed)
    octets[1] = (octets[1] + offset) % 256
    return f"{ipaddress.IPv4Address(bytes(octets))}/{mask}"


def allocate_subnets(index: int, overlap: bool, settings: ArmadaSettings) -> tuple[str, str]:
    """Return the (pod, service) subnets for the cluster at *index*."""
    if overlap:
        pod_offset = service_offset = 0
    else:
        pod_offset = POD_SUBNET_STRIDE * index
        service_offset = SERVICE_SUBNET_STRIDE * index
    return (
        offset_subnet(settings.pod_cidr_base, pod_offset, settings.pod_cidr_mask),
        offset_subnet(settings.service_cidr_base, service_offset, settings.service_cidr_mask),
    )


def select_version_profile(name: str, image: str) -> KubeVersionProfile:
    """Pick the kubeadm schema from the ``:v<semver>`` suffix of a node image.

    Args:
        name: Cluster name, used in the error message.
        image: Node image reference, or empty for kind's default image.

    Returns:
        LEGACY for Kubernetes older than 1.15, CURRENT otherwise.

    Raises:
        ConfigurationError: If the image has no parseable ``:v<version>`` suffix.
    """
    if not image:
        return KubeVersionProfile.CURRENT

    hint = "split is by ':v', example of a correct image name: kindest/node:v1.15.3"
    parts = image.split(IMAGE_VERSION_SEPARATOR)
    if len(parts) != 2:
        raise ConfigurationError(f"{name!r}: could not extract version from {image}", hint)

    # Digest-pinned references carry "@sha256:..." after the tag.
    raw_version = parts[1].split("@", 1)[0]
    try:
        version = Version(raw_version)
    except InvalidVersion as err:
        raise ConfigurationError(f"{name!r}: invalid version {raw_version!r} in image {image}", hint) from err

    if version < Version(LEGACY_PROFILE_CUTOFF):
        return KubeVersionProfile.LEGACY
    return KubeVersionProfile.CURRENT


def plan_cluster(index: int, flags: CreateFlags, settings: ArmadaSettings) -> ClusterSpec:
    """Resolve the full specification of the cluster at *index*. Performs no I/O.

    Raises:
        ConfigurationError: If the node image tag is malformed.
    """
    name = cluster_name(index, settings)
    pod_subnet, service_subnet = allocate_subnets(index, flags.overlap, settings)
    return ClusterSpec(
        index=index,
        name=name,
        cni=flags.cni,
        pod_subnet=pod_subnet,
        service_subnet=service_subnet,
        dns_domain=f"{name}{DNS_DOMAIN_SUFFIX}",
        kube_version_profile=select_version_profile(name, flags.image),
        worker_count=settings.num_workers,
        # Non-default CNIs are gated by their own DaemonSet instead.
        wait_for_ready=flags.wait if flags.cni.is_default else 0,
        node_image=flags.image,
        retain_on_failure=flags.retain,
        deploy_optional_component=flags.tiller,
        kubeconfig_path=settings.raw_kubeconfig_path(name),
    )


def plan_fleet(
    flags: CreateFlags,
    settings: ArmadaSettings,
    engine: BringUpEngine,
    logger: logging.Logger,
) -> list[ClusterSpec]:
    """Plan every cluster of the fleet that the bring-up engine does not know yet.

    Args:
        flags: Create options for this invocation.
        settings: Tool-wide defaults.
        engine: Bring-up engine queried for existing clusters.
        logger: Logger for skip notices.

    Returns:
        Specifications for the clusters that still need creating, in index order.

    Raises:
        ConfigurationError: If the node image tag is malformed.
    """
    known = set(engine.known_clusters())
    specs: list[ClusterSpec] = []
    for index in range(1, flags.num_clusters + 1):
        name = cluster_name(index, settings)
        if name in known:
            logger.info("✔ Cluster with the name %r already exists.", name)
            continue
        specs.append(plan_cluster(index, flags, settings))
    return specs
