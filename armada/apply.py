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

"""Idempotent creation of multi-document manifests against one cluster."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import kubernetes.client
import yaml
from kubernetes.client.exceptions import ApiException

from armada.constants import NS_DEFAULT
from armada.exceptions import ApplyError

ApiResolver = Callable[[type], Any]
CreateFn = Callable[[ApiResolver, str, dict], Any]

HTTP_CONFLICT = 409
WORKLOAD_KINDS = frozenset({"DaemonSet", "Deployment"})


@dataclass(frozen=True)
class ManifestObject:
    """One decoded document of a manifest stream."""

    kind: str
    name: str
    namespace: str | None
    body: dict


@dataclass
class ApplyReport:
    """What happened to each object of one ``apply`` call, as ``Kind/name`` labels."""

    created: list[str] = field(default_factory=list)
    existing: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


# ============================================================================
# Kind dispatch
# ============================================================================

def _namespaced(api: type, method: str) -> CreateFn:
    def create(apis: ApiResolver, namespace: str, body: dict) -> Any:
        return getattr(apis(api), method)(namespace, body)
    return create


def _cluster_scoped(api: type, method: str) -> CreateFn:
    def create(apis: ApiResolver, namespace: str, body: dict) -> Any:
        return getattr(apis(api), method)(body)
    return create


def _create_pod_security_policy(apis: ApiResolver, namespace: str, body: dict) -> Any:
    # PodSecurityPolicy has no typed client anymore; go through the generic endpoint.
    group, _, version = body.get("apiVersion", "policy/v1beta1").partition("/")
    return apis(kubernetes.client.CustomObjectsApi).create_cluster_custom_object(
        group, version, "podsecuritypolicies", body
    )


KIND_HANDLERS: dict[str, CreateFn] = {
    "ServiceAccount": _namespaced(kubernetes.client.CoreV1Api, "create_namespaced_service_account"),
    "ConfigMap": _namespaced(kubernetes.client.CoreV1Api, "create_namespaced_config_map"),
    "Service": _namespaced(kubernetes.client.CoreV1Api, "create_namespaced_service"),
    "Pod": _namespaced(kubernetes.client.CoreV1Api, "create_namespaced_pod"),
    "Role": _namespaced(kubernetes.client.RbacAuthorizationV1Api, "create_namespaced_role"),
    "RoleBinding": _namespaced(kubernetes.client.RbacAuthorizationV1Api, "create_namespaced_role_binding"),
    "ClusterRole": _cluster_scoped(kubernetes.client.RbacAuthorizationV1Api, "create_cluster_role"),
    "ClusterRoleBinding": _cluster_scoped(kubernetes.client.RbacAuthorizationV1Api, "create_cluster_role_binding"),
    "DaemonSet": _namespaced(kubernetes.client.AppsV1Api, "create_namespaced_daemon_set"),
    "Deployment": _namespaced(kubernetes.client.AppsV1Api, "create_namespaced_deployment"),
    "CustomResourceDefinition": _cluster_scoped(
        kubernetes.client.ApiextensionsV1Api, "create_custom_resource_definition"
    ),
    "PodSecurityPolicy": _create_pod_security_policy,
}


def decode_documents(cluster: str, text: str) -> list[ManifestObject]:
    """Split a multi-document YAML stream into manifest objects.

    Blank documents are skipped.

    Raises:
        ApplyError: If the stream does not parse or a document lacks kind or name.
    """
    try:
        docs = [doc for doc in yaml.safe_load_all(text) if doc]
    except yaml.YAMLError as err:
        raise ApplyError(cluster, "manifest", "<stream>", f"invalid YAML: {err}") from err

    objects: list[ManifestObject] = []
    for doc in docs:
        if not isinstance(doc, dict):
            raise ApplyError(cluster, "manifest", "<document>", f"expected a mapping, got {type(doc).__name__}")
        kind = doc.get("kind")
        metadata = doc.get("metadata") or {}
        name = metadata.get("name")
        if not kind or not name:
            raise ApplyError(cluster, kind or "manifest", name or "<unnamed>", "document has no kind or metadata.name")
        objects.append(ManifestObject(kind=kind, name=name, namespace=metadata.get("namespace"), body=doc))
    return objects


class ResourceApplier:
    """Create manifest objects in one cluster, treating "already exists" as success.

    Args:
        api_client: Client bound to the cluster's kubeconfig.
        cluster: Cluster name used in log lines and errors.
        logger: Logger handed down by the orchestrator.
        api_factory: Builds a typed API object for an API class. Defaults to
            instantiating the class around *api_client*.
    """

    def __init__(
        self,
        api_client: kubernetes.client.ApiClient | None,
        cluster: str,
        logger: logging.Logger,
        api_factory: ApiResolver | None = None,
    ) -> None:
        self.cluster = cluster
        self._logger = logger
        self._apis: dict[type, Any] = {}
        self._api_factory = api_factory or (lambda api: api(api_client))

    def _resolve(self, api: type) -> Any:
        if api not in self._apis:
            self._apis[api] = self._api_factory(api)
        return self._apis[api]

    def apply(
        self,
        manifest: str,
        label: str,
        allowed_kinds: Iterable[str],
        default_namespace: str = NS_DEFAULT,
    ) -> ApplyReport:
        """Create every allowed object of *manifest* in order.

        Args:
            manifest: Multi-document YAML text.
            label: Human-readable name of the manifest for log lines.
            allowed_kinds: Kinds accepted from this manifest; others are logged and skipped.
            default_namespace: Namespace for namespaced objects that declare none.

        Returns:
            Report of created, already existing and skipped objects.

        Raises:
            ApplyError: If decoding fails or the API server rejects an object
                for any reason other than it already existing.
        """
        allowed = frozenset(allowed_kinds)
        report = ApplyReport()
        for obj in decode_documents(self.cluster, manifest):
            ref = f"{obj.kind}/{obj.name}"
            handler = KIND_HANDLERS.get(obj.kind)
            if obj.kind not in allowed or handler is None:
                self._logger.warning("%s: %s: unsupported kind %s, skipping %r", self.cluster, label, obj.kind, obj.name)
                report.skipped.append(ref)
                continue

            try:
                handler(self._resolve, obj.namespace or default_namespace, obj.body)
            except ApiException as err:
                if err.status == HTTP_CONFLICT:
                    level = logging.INFO if obj.kind in WORKLOAD_KINDS else logging.DEBUG
                    self._logger.log(level, "%s: ✔ %s %s already exists", self.cluster, obj.kind, obj.name)
                    report.existing.append(ref)
                    continue
                raise ApplyError(self.cluster, obj.kind, obj.name, f"{err.status} {err.reason}") from err

            self._logger.debug("%s: %s created %s", self.cluster, label, ref)
            report.created.append(ref)

        self._logger.info("%s: ✔ %s applied", self.cluster, label)
        return report
