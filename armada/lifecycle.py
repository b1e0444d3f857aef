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

"""Per-cluster provisioning steps, strictly sequential within one cluster."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

import kubernetes.client
import kubernetes.config

from armada import kubeconfig
from armada.apply import ResourceApplier
from armada.config import ArmadaSettings, ClusterSpec
from armada.constants import (
    CNI_ALLOWED_KINDS,
    CNI_DAEMONSETS,
    COREDNS_DEPLOYMENT,
    CRD_ALLOWED_KINDS,
    NS_KUBE_SYSTEM,
    TILLER_ALLOWED_KINDS,
    TILLER_DEPLOYMENT,
    TPL_CALICO_CRDS,
    TPL_TILLER,
    CniKind,
    WorkloadKind,
)
from armada.engine import BringUpEngine
from armada.exceptions import CleanupError, ProvisioningError
from armada.render import render_cni_manifest, render_manifest, write_cluster_config
from armada.runtime import ContainerRuntime
from armada.waiter import Clock, Probe, ReadinessTarget, SystemClock, make_probe, wait_for

KubeClientFactory = Callable[[Path], kubernetes.client.ApiClient]
ApplierFactory = Callable[[kubernetes.client.ApiClient, str, logging.Logger], ResourceApplier]
ProbeFactory = Callable[[WorkloadKind, kubernetes.client.ApiClient], Probe]


def new_kube_client(path: Path) -> kubernetes.client.ApiClient:
    return kubernetes.config.new_client_from_config(config_file=str(path))


class ClusterLifecycle:
    """Bring up, finalize, and tear down single clusters.

    Args:
        settings: Tool-wide defaults and output locations.
        engine: Bring-up engine (kind).
        runtime: Container runtime (Docker).
        logger: Logger handed down by the orchestrator.
        kube_client_factory: Builds an API client from a kubeconfig path.
        applier_factory: Builds the applier for one cluster.
        probe_factory: Builds the readiness probe for a workload kind.
        clock: Time source for readiness waits.
    """

    def __init__(
        self,
        settings: ArmadaSettings,
        engine: BringUpEngine,
        runtime: ContainerRuntime,
        logger: logging.Logger,
        kube_client_factory: KubeClientFactory = new_kube_client,
        applier_factory: ApplierFactory = ResourceApplier,
        probe_factory: ProbeFactory = make_probe,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine
        self.runtime = runtime
        self._logger = logger
        self._kube_client_factory = kube_client_factory
        self._applier_factory = applier_factory
        self._probe_factory = probe_factory
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def bring_up(self, spec: ClusterSpec) -> Path:
        """Render the kind config for *spec* and create the cluster from it.

        Returns:
            Path of the written kind config.

        Raises:
            ProvisioningError: If rendering, writing, or kind fails.
        """
        config_path = write_cluster_config(spec, self.settings)
        self._logger.info("%s: kind config written to %s", spec.name, config_path)
        self._logger.info("%s: creating cluster (cni=%s, workers=%d)", spec.name, spec.cni.value, spec.worker_count)
        self.engine.create(spec, config_path)
        self._logger.info("%s: ✔ cluster created", spec.name)
        return config_path

    def finalize(self, spec: ClusterSpec) -> None:
        """Derive kubeconfigs, install the CNI, and deploy tiller when requested.

        Raises:
            ArmadaError: Any step failing, wrapped with the cluster name.
        """
        address = self.runtime.control_plane_address(spec.name)
        host_path, container_path = kubeconfig.derive(spec.name, spec.kubeconfig_path, address, self.settings)
        self._logger.debug("%s: kubeconfigs written to %s and %s", spec.name, host_path, container_path)

        with self.client_for(spec.name) as api_client:
            applier = self._applier_factory(api_client, spec.name, self._logger)
            if not spec.cni.is_default:
                self.install_cni(spec, applier, api_client)
            if spec.deploy_optional_component:
                self.install_tiller(spec, applier, api_client)
        self._logger.info("%s: ✔ cluster is ready", spec.name)

    def install_cni(self, spec: ClusterSpec, applier: ResourceApplier, api_client: kubernetes.client.ApiClient) -> None:
        if spec.cni is CniKind.CALICO:
            applier.apply(render_manifest(TPL_CALICO_CRDS, spec), "Calico CRDs", CRD_ALLOWED_KINDS, NS_KUBE_SYSTEM)
        label = spec.cni.value.capitalize()
        applier.apply(render_cni_manifest(spec.cni, spec), label, CNI_ALLOWED_KINDS[spec.cni], NS_KUBE_SYSTEM)
        self.wait(
            ReadinessTarget(spec.name, NS_KUBE_SYSTEM, WorkloadKind.DAEMONSET, CNI_DAEMONSETS[spec.cni]),
            api_client,
        )
        self.wait(
            ReadinessTarget(spec.name, NS_KUBE_SYSTEM, WorkloadKind.DEPLOYMENT, COREDNS_DEPLOYMENT),
            api_client,
        )

    def install_tiller(self, spec: ClusterSpec, applier: ResourceApplier, api_client: kubernetes.client.ApiClient) -> None:
        applier.apply(render_manifest(TPL_TILLER, spec), "Tiller", TILLER_ALLOWED_KINDS, NS_KUBE_SYSTEM)
        self.wait(
            ReadinessTarget(spec.name, NS_KUBE_SYSTEM, WorkloadKind.DEPLOYMENT, TILLER_DEPLOYMENT),
            api_client,
        )

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def client_for(self, name: str) -> kubernetes.client.ApiClient:
        """Build an API client from the kubeconfig variant reachable from here.

        Raises:
            ProvisioningError: If the kubeconfig cannot be loaded.
        """
        path = kubeconfig.resolve_active_path(name, self.settings, self.runtime)
        try:
            return self._kube_client_factory(path)
        except (kubernetes.config.ConfigException, OSError) as err:
            raise ProvisioningError(name, f"failed to load kubeconfig {path}", str(err)) from err

    def wait(self, target: ReadinessTarget, api_client: kubernetes.client.ApiClient) -> None:
        if target.kind is WorkloadKind.PODSET:
            interval = self.settings.pod_poll_interval
        else:
            interval = self.settings.rollout_poll_interval
        probe = self._probe_factory(target.kind, api_client)
        wait_for(target, probe, self.settings.wait_timeout, interval, self._clock, self._logger)

    def deploy(self, name: str, template: str, label: str, allowed_kinds, target: ReadinessTarget) -> None:
        """Apply a bundled manifest to an existing cluster and wait for *target*."""
        with self.client_for(name) as api_client:
            applier = self._applier_factory(api_client, name, self._logger)
            applier.apply(render_manifest(template), label, allowed_kinds, target.namespace)
            self.wait(target, api_client)

    # ------------------------------------------------------------------
    # Destroy, logs, images
    # ------------------------------------------------------------------

    def destroy(self, name: str) -> None:
        """Delete the cluster and every file generated for it.

        Raises:
            CleanupError: If kind or the file removal fails.
        """
        raw_kubeconfig = self.settings.raw_kubeconfig_path(name)
        try:
            self.engine.delete(name, raw_kubeconfig)
        except ProvisioningError as err:
            raise CleanupError(name, err.message) from err

        paths = (
            self.settings.kind_config_path(name),
            self.settings.local_kubeconfig_path(name),
            self.settings.container_kubeconfig_path(name),
            raw_kubeconfig,
        )
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as err:
                raise CleanupError(name, f"failed to remove {path}: {err}") from err
            self._logger.debug("%s: removed %s", name, path)
        self._logger.info("%s: ✔ cluster destroyed", name)

    def export_logs(self, name: str) -> Path:
        dest = self.settings.logs_dir / name
        shutil.rmtree(dest, ignore_errors=True)
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.engine.export_logs(name, dest)
        self._logger.info("%s: ✔ logs exported to %s", name, dest)
        return dest

    def load_image(self, image: str, name: str) -> None:
        self._logger.info("%s: loading image %s", name, image)
        self.engine.load_image(image, name)
        self._logger.info("%s: ✔ image %s loaded", name, image)
