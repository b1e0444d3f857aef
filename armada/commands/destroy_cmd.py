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

"""Destroy subcommands (clusters)."""

from __future__ import annotations

import typer

from armada.commands import build_orchestrator
from armada.utils import split_csv

app = typer.Typer(help="Destroy clusters.")


@app.command("clusters")
def clusters(
    cluster: list[str] | None = typer.Option(None, "--cluster", "-c", help="Comma separated cluster names, e.g. cl1,cl3"),
    debug: bool = typer.Option(False, "--debug", "-v", help="Set log level to debug"),
) -> None:
    """Delete clusters and their generated files. Defaults to every cluster on disk."""
    build_orchestrator(debug).destroy(split_csv(cluster) or None)
