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

"""Deploy subcommands (netshoot, nginx-demo)."""

from __future__ import annotations

import typer

from armada.commands import build_orchestrator
from armada.utils import split_csv

app = typer.Typer(help="Deploy debug workloads into existing clusters.")


@app.command("netshoot")
def netshoot(
    host_network: bool = typer.Option(False, "--host-network", help="Run the pods in the node network namespace"),
    cluster: list[str] | None = typer.Option(None, "--cluster", "-c", help="Comma separated cluster names"),
    debug: bool = typer.Option(False, "--debug", "-v", help="Set log level to debug"),
) -> None:
    """Deploy the netshoot DaemonSet."""
    build_orchestrator(debug).deploy_netshoot(host_network, split_csv(cluster) or None)


@app.command("nginx-demo")
def nginx_demo(
    cluster: list[str] | None = typer.Option(None, "--cluster", "-c", help="Comma separated cluster names"),
    debug: bool = typer.Option(False, "--debug", "-v", help="Set log level to debug"),
) -> None:
    """Deploy the nginx demo DaemonSet and Service."""
    build_orchestrator(debug).deploy_nginx_demo(split_csv(cluster) or None)
