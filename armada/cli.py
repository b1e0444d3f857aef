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

"""
cli.py - Multi-cluster kind environments for network testing.

Subcommands:
    create     Create clusters
    destroy    Destroy clusters
    deploy     Deploy debug workloads (netshoot, nginx-demo)
    export     Export cluster logs
    load       Load docker images into cluster nodes
    version    Print the installed version

Examples:
    # Two clusters with the default CNI
    armada create clusters

    # Three flannel clusters sharing the same subnets
    armada create clusters -n 3 --flannel --overlap

    # Host-network netshoot pods in cl1 and cl2
    armada deploy netshoot --host-network --cluster cl1,cl2

    # Tear everything down
    armada destroy clusters

For detailed usage information, run: armada --help
"""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError, version as dist_version

import typer
from rich.markup import escape

from armada import configure_logging, console
from armada.commands import (
    create_cmd,
    deploy_cmd,
    destroy_cmd,
    export_cmd,
    load_cmd,
)

app = typer.Typer(
    help="Disposable multi-cluster kind environments for network testing.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    configure_logging()


app.add_typer(create_cmd.app, name="create")
app.add_typer(destroy_cmd.app, name="destroy")
app.add_typer(deploy_cmd.app, name="deploy")
app.add_typer(export_cmd.app, name="export")
app.add_typer(load_cmd.app, name="load")


@app.command("version")
def version() -> None:
    """Print the installed armada version."""
    try:
        installed = dist_version("armada")
    except PackageNotFoundError:
        installed = "unknown"
    typer.echo(f"armada version: {installed}")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
