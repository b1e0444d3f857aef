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

"""Fleet-wide workflows: fan out one task per cluster, join at each phase."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial

from rich.panel import Panel

from armada import console
from armada.config import ArmadaSettings, ClusterSpec, CreateFlags
from armada.constants import (
    DEBUG_ALLOWED_KINDS,
    NETSHOOT_DAEMONSET,
    NETSHOOT_HOST_NET_DAEMONSET,
    NGINX_DEMO_SELECTOR,
    NS_DEFAULT,
    TPL_NETSHOOT,
    TPL_NETSHOOT_HOST,
    TPL_NGINX_DEMO,
    WorkloadKind,
)
from armada.exceptions import ConfigurationError, FleetError
from armada.lifecycle import ClusterLifecycle
from armada.planner import plan_fleet
from armada.render import known_cluster_names
from armada.waiter import ReadinessTarget

Outcomes = dict[str, BaseException | None]


class FleetOrchestrator:
    """Run cluster lifecycles concurrently, one task per cluster.

    Args:
        settings: Tool-wide defaults and output locations.
        lifecycle: Per-cluster steps.
        logger: Logger for fleet-level progress and per-cluster failures.
    """

    def __init__(self, settings: ArmadaSettings, lifecycle: ClusterLifecycle, logger: logging.Logger) -> None:
        self.settings = settings
        self.lifecycle = lifecycle
        self._logger = logger

    # ============================================================================
    # Phase runner
    # ============================================================================

    def _run_phase(self, phase: str, tasks: dict[str, Callable[[], object]]) -> Outcomes:
        """Run every task concurrently and join them all before returning.

        Args:
            phase: Phase name for log lines.
            tasks: Mapping of cluster name to callable.

        Returns:
            Mapping of cluster name to the exception it raised, or None. Insertion
            order follows completion order.
        """
        if not tasks:
            return {}

        outcomes: Outcomes = {}
        lock = threading.Lock()

        def _run_task(name: str, fn: Callable[[], object]) -> None:
            try:
                fn()
            except Exception as err:
                self._logger.error("%s: %s failed: %s", name, phase, err)
                with lock:
                    outcomes[name] = err
                return
            with lock:
                outcomes[name] = None

        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = {executor.submit(_run_task, name, fn): name for name, fn in tasks.items()}
            for future in as_completed(futures):
                future.result()
        return outcomes

    @staticmethod
    def _raise_failures(phase: str, outcomes: Outcomes) -> None:
        failures = {name: err for name, err in outcomes.items() if err is not None}
        if failures:
            first = next(iter(failures.values()))
            raise FleetError(phase, failures) from first

    def _run_fatal(self, phase: str, tasks: dict[str, Callable[[], object]]) -> None:
        self._raise_failures(phase, self._run_phase(phase, tasks))

    # ============================================================================
    # Targets
    # ============================================================================

    def on_disk_clusters(self) -> list[str]:
        return known_cluster_names(self.settings.kind_config_dir)

    def resolve_targets(self, names: Iterable[str] | None) -> list[str]:
        """Return the requested names, or every cluster with a config on disk."""
        if names:
            return list(dict.fromkeys(names))
        return self.on_disk_clusters()

    def _known_targets(self, names: Iterable[str] | None) -> list[str]:
        targets = self.resolve_targets(names)
        known = set(self.lifecycle.engine.known_clusters())
        unknown = [name for name in targets if name not in known]
        if unknown:
            raise ConfigurationError(f"unknown cluster(s): {', '.join(unknown)}")
        return targets

    def kubeconfig_hint(self) -> str:
        paths = [str(self.settings.local_kubeconfig_path(name)) for name in self.on_disk_clusters()]
        return f"export KUBECONFIG={':'.join(paths)}"

    # ============================================================================
    # Workflows
    # ============================================================================

    def create(self, flags: CreateFlags) -> list[ClusterSpec]:
        """Create the fleet in two phases: bring-up, then finalize.

        Args:
            flags: Create options for this invocation.

        Returns:
            Specifications of the clusters that were created.

        Raises:
            ConfigurationError: If planning fails.
            FleetError: If any cluster failed in either phase.
        """
        specs = plan_fleet(flags, self.settings, self.lifecycle.engine, self._logger)
        if not specs:
            self._logger.info("All %d cluster(s) already exist, nothing to create", flags.num_clusters)
            return []

        console.print(Panel.fit(f"Creating {len(specs)} cluster(s)", style="bold blue"))
        self._run_fatal("bring-up", {s.name: partial(self.lifecycle.bring_up, s) for s in specs})

        console.print(Panel.fit("Finalizing clusters", style="bold blue"))
        self._run_fatal("finalize", {s.name: partial(self.lifecycle.finalize, s) for s in specs})

        console.print(f"[green]✅ {len(specs)} cluster(s) ready[/green]")
        console.print(self.kubeconfig_hint(), markup=False, highlight=False)
        return specs

    def destroy(self, names: Iterable[str] | None = None) -> Outcomes:
        """Delete clusters concurrently, best-effort.

        Args:
            names: Clusters to delete, or None for every cluster on disk.

        Returns:
            Mapping of cluster name to its cleanup error, or None on success.
        """
        if names:
            known = set(self.lifecycle.engine.known_clusters())
            targets = []
            for name in dict.fromkeys(names):
                if name in known:
                    targets.append(name)
                else:
                    self._logger.error("%s: cluster is not known, skipping", name)
        else:
            targets = self.on_disk_clusters()

        if not targets:
            self._logger.info("No clusters to destroy")
            return {}

        console.print(Panel.fit(f"Destroying {len(targets)} cluster(s)", style="bold blue"))
        outcomes = self._run_phase("destroy", {name: partial(self.lifecycle.destroy, name) for name in targets})
        failed = [name for name, err in outcomes.items() if err is not None]
        if failed:
            console.print(f"[yellow]⚠ destroy failed for: {', '.join(sorted(failed))}[/yellow]")
        else:
            console.print("[green]✅ Clusters destroyed[/green]")
        return outcomes

    def deploy_netshoot(self, host_network: bool = False, names: Iterable[str] | None = None) -> None:
        template = TPL_NETSHOOT_HOST if host_network else TPL_NETSHOOT
        daemonset = NETSHOOT_HOST_NET_DAEMONSET if host_network else NETSHOOT_DAEMONSET
        tasks = {
            name: partial(
                self.lifecycle.deploy,
                name,
                template,
                "Netshoot",
                DEBUG_ALLOWED_KINDS,
                ReadinessTarget(name, NS_DEFAULT, WorkloadKind.DAEMONSET, daemonset),
            )
            for name in self.resolve_targets(names)
        }
        self._run_fatal("deploy netshoot", tasks)

    def deploy_nginx_demo(self, names: Iterable[str] | None = None) -> None:
        tasks = {
            name: partial(
                self.lifecycle.deploy,
                name,
                TPL_NGINX_DEMO,
                "Nginx demo",
                DEBUG_ALLOWED_KINDS,
                ReadinessTarget(name, NS_DEFAULT, WorkloadKind.PODSET, "nginx-demo", selector=NGINX_DEMO_SELECTOR),
            )
            for name in self.resolve_targets(names)
        }
        self._run_fatal("deploy nginx-demo", tasks)

    def export_logs(self, names: Iterable[str] | None = None) -> None:
        tasks = {name: partial(self.lifecycle.export_logs, name) for name in self.resolve_targets(names)}
        self._run_fatal("export logs", tasks)

    def load_images(self, images: list[str], names: Iterable[str] | None = None) -> None:
        """Load local docker images into every target cluster.

        Raises:
            ConfigurationError: If an image is missing locally or a cluster is unknown.
            FleetError: If loading failed for any cluster.
        """
        if not images:
            raise ConfigurationError("no images given", "pass --image name[,name...]")
        missing = [image for image in images if not self.lifecycle.runtime.has_image(image)]
        if missing:
            raise ConfigurationError(f"image(s) not found locally: {', '.join(missing)}", "docker pull them first")
        targets = self._known_targets(names)

        def _load_all(name: str) -> None:
            for image in images:
                self.lifecycle.load_image(image, name)

        self._run_fatal("load images", {name: partial(_load_all, name) for name in targets})
