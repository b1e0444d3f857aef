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

"""kind as the cluster bring-up engine."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import sh

from armada.config import ClusterSpec
from armada.exceptions import ProvisioningError


class BringUpEngine(Protocol):
    """Turns a declarative cluster config into running node containers."""

    def known_clusters(self) -> list[str]: ...

    def is_known(self, name: str) -> bool: ...

    def create(self, spec: ClusterSpec, config_path: Path) -> None: ...

    def delete(self, name: str, kubeconfig_path: Path) -> None: ...

    def export_logs(self, name: str, dest: Path) -> None: ...

    def load_image(self, image: str, name: str) -> None: ...


def _stderr(err: sh.ErrorReturnCode) -> str:
    return err.stderr.decode(errors="replace").strip()


class KindEngine:
    """Drive the ``kind`` binary through sh.

    Args:
        command: Callable standing in for ``sh.kind``; resolved on first use when omitted.
    """

    def __init__(self, command: Callable[..., Any] | None = None) -> None:
        self._command = command

    def _kind(self, *args: str) -> Any:
        command = self._command or sh.kind
        return command(*args)

    def known_clusters(self) -> list[str]:
        """Return the names of every cluster kind currently knows.

        Raises:
            ProvisioningError: If kind cannot list its clusters.
        """
        try:
            output = str(self._kind("get", "clusters"))
        except sh.ErrorReturnCode as err:
            raise ProvisioningError("kind", "failed to list clusters", _stderr(err)) from err
        # "No kind clusters found." goes to stderr, so stdout is empty then.
        return [line.strip() for line in output.splitlines() if line.strip()]

    def is_known(self, name: str) -> bool:
        return name in self.known_clusters()

    def create(self, spec: ClusterSpec, config_path: Path) -> None:
        """Create the cluster described by *config_path*.

        Args:
            spec: Cluster specification carrying image, retain and wait settings.
            config_path: Rendered kind config for the cluster.

        Raises:
            ProvisioningError: If kind fails to create the cluster.
        """
        args = [
            "create", "cluster",
            "--name", spec.name,
            "--config", str(config_path),
            "--kubeconfig", str(spec.kubeconfig_path),
        ]
        if spec.node_image:
            args += ["--image", spec.node_image]
        if spec.retain_on_failure:
            args.append("--retain")
        if spec.wait_for_ready > 0:
            args += ["--wait", f"{int(spec.wait_for_ready)}s"]
        try:
            self._kind(*args)
        except sh.ErrorReturnCode as err:
            raise ProvisioningError(spec.name, "failed to create cluster", _stderr(err)) from err

    def delete(self, name: str, kubeconfig_path: Path) -> None:
        try:
            self._kind("delete", "cluster", "--name", name, "--kubeconfig", str(kubeconfig_path))
        except sh.ErrorReturnCode as err:
            raise ProvisioningError(name, "failed to delete cluster", _stderr(err)) from err

    def export_logs(self, name: str, dest: Path) -> None:
        try:
            self._kind("export", "logs", str(dest), "--name", name)
        except sh.ErrorReturnCode as err:
            raise ProvisioningError(name, f"failed to export logs to {dest}", _stderr(err)) from err

    def load_image(self, image: str, name: str) -> None:
        try:
            self._kind("load", "docker-image", image, "--name", name)
        except sh.ErrorReturnCode as err:
            raise ProvisioningError(name, f"failed to load image {image}", _stderr(err)) from err
