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

"""Load subcommands (docker-images)."""

from __future__ import annotations

import typer

from armada.commands import build_orchestrator
from armada.utils import split_csv

app = typer.Typer(help="Load local artifacts into clusters.")


@app.command("docker-images")
def docker_images(
    image: list[str] = typer.Option(..., "--image", "-i", help="Comma separated image names"),
    cluster: list[str] | None = typer.Option(None, "--cluster", "-c", help="Comma separated cluster names"),
    debug: bool = typer.Option(False, "--debug", "-v", help="Set log level to debug"),
) -> None:
    """Load local docker images into every target cluster's nodes."""
    build_orchestrator(debug).load_images(split_csv(image), split_csv(cluster) or None)
