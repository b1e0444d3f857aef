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

"""Jinja2 rendering of kind configs and bundled Kubernetes manifests."""

from __future__ import annotations

from pathlib import Path

import jinja2
import yaml

from armada.config import ArmadaSettings, ClusterSpec
from armada.constants import (
    CNI_TEMPLATES,
    KIND_CONFIG_SUFFIX,
    TEMPLATES_DIR,
    TPL_CLUSTER_CONFIG,
    CniKind,
    dep_value,
)
from armada.exceptions import ConfigurationError, ProvisioningError


def iterate(start: int, end: int) -> list[int]:
    """Inclusive integer range, used to template N worker-node stanzas."""
    return list(range(start, end + 1))


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(TEMPLATES_DIR),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["iterate"] = iterate
    env.globals["deps"] = dep_value
    return env


_ENV = _environment()


def render_manifest(template: str, spec: ClusterSpec | None = None, **extra) -> str:
    """Render one bundled template.

    Args:
        template: Template file name under ``armada/templates``.
        spec: Cluster whose parameters are exposed to the template, if any.
        **extra: Additional template variables.

    Returns:
        The rendered YAML text.

    Raises:
        ProvisioningError: If the template cannot be loaded or rendered.
    """
    context = spec.template_context() if spec is not None else {}
    context.update(extra)
    owner = spec.name if spec is not None else template
    try:
        return _ENV.get_template(template).render(**context)
    except jinja2.TemplateError as err:
        raise ProvisioningError(owner, f"failed to render {template}", str(err)) from err


def render_cluster_config(spec: ClusterSpec) -> str:
    return render_manifest(TPL_CLUSTER_CONFIG, spec)


def render_cni_manifest(cni: CniKind, spec: ClusterSpec) -> str:
    """Render the DaemonSet manifest of a non-default CNI.

    Raises:
        ConfigurationError: If *cni* is the default CNI, which has no manifest.
    """
    template = CNI_TEMPLATES.get(cni)
    if template is None:
        raise ConfigurationError(f"{spec.name}: CNI {cni.value!r} has no manifest to apply")
    return render_manifest(template, spec)


def write_cluster_config(spec: ClusterSpec, settings: ArmadaSettings) -> Path:
    """Render the kind config for *spec* and write it under the kind-clusters dir.

    Returns:
        Path of the written config file.

    Raises:
        ProvisioningError: If rendering or writing fails.
    """
    text = render_cluster_config(spec)
    path = settings.kind_config_path(spec.name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    except OSError as err:
        raise ProvisioningError(spec.name, f"failed to write kind config {path}", str(err)) from err
    return path


def known_cluster_names(config_dir: Path) -> list[str]:
    """Return the cluster names recorded in the kind configs under *config_dir*.

    The name is read from the config's top-level ``name`` field. Files that do
    not parse or carry no name are ignored.
    """
    if not config_dir.is_dir():
        return []
    names: list[str] = []
    for path in sorted(config_dir.glob(f"*{KIND_CONFIG_SUFFIX}")):
        try:
            doc = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError):
            continue
        if isinstance(doc, dict) and isinstance(doc.get("name"), str) and doc["name"]:
            names.append(doc["name"])
    return names
