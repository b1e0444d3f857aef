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

"""Docker as the container runtime the kind nodes live in."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import docker

from armada.constants import BRIDGE_DRIVER, CONTROL_PLANE_SUFFIX
from armada.exceptions import ProvisioningError


class ContainerRuntime(Protocol):
    def control_plane_address(self, cluster: str) -> str: ...

    def bridge_subnets(self) -> list[str]: ...

    def has_image(self, reference: str) -> bool: ...


class DockerRuntime:
    """Inspect node containers, networks and local images via the Docker SDK.

    Args:
        network: Network whose address is reported for the control plane.
        client_factory: Callable returning a connected ``docker.DockerClient``.
    """

    def __init__(
        self,
        network: str,
        client_factory: Callable[[], docker.DockerClient] = docker.from_env,
    ) -> None:
        self._network = network
        self._client_factory = client_factory

    def _client(self, cluster: str) -> docker.DockerClient:
        try:
            return self._client_factory()
        except docker.errors.DockerException as err:
            raise ProvisioningError(cluster, "failed to connect to Docker", str(err)) from err

    def control_plane_address(self, cluster: str) -> str:
        """Return the internal IP of the cluster's control-plane container.

        Args:
            cluster: Cluster name.

        Returns:
            The container's address on the configured network, or on the first
            attached network with an address when that one is absent.

        Raises:
            ProvisioningError: If the container or its address cannot be found.
        """
        container_name = f"{cluster}{CONTROL_PLANE_SUFFIX}"
        client = self._client(cluster)
        try:
            containers = client.containers.list(filters={"name": container_name})
        except docker.errors.APIError as err:
            raise ProvisioningError(cluster, "failed to list containers", str(err)) from err
        finally:
            client.close()

        # The name filter matches substrings, so "cl1" would also match "cl10".
        matches = [c for c in containers if c.name == container_name]
        if not matches:
            raise ProvisioningError(cluster, f"control-plane container {container_name!r} not found")

        networks = matches[0].attrs.get("NetworkSettings", {}).get("Networks") or {}
        preferred = networks.get(self._network, {}).get("IPAddress")
        if preferred:
            return preferred
        for settings in networks.values():
            if settings.get("IPAddress"):
                return settings["IPAddress"]
        raise ProvisioningError(cluster, f"control-plane container {container_name!r} has no IP address")

    def bridge_subnets(self) -> list[str]:
        """Return the IPAM subnets of every bridge-driver network."""
        client = self._client("docker")
        try:
            networks = client.networks.list(filters={"driver": BRIDGE_DRIVER})
        except docker.errors.APIError as err:
            raise ProvisioningError("docker", "failed to list networks", str(err)) from err
        finally:
            client.close()

        subnets: list[str] = []
        for network in networks:
            for pool in (network.attrs.get("IPAM") or {}).get("Config") or []:
                if pool.get("Subnet"):
                    subnets.append(pool["Subnet"])
        return subnets

    def has_image(self, reference: str) -> bool:
        client = self._client("docker")
        try:
            client.images.get(reference)
            return True
        except docker.errors.ImageNotFound:
            return False
        except docker.errors.APIError as err:
            raise ProvisioningError("docker", f"failed to inspect image {reference}", str(err)) from err
        finally:
            client.close()
