"""Rendering of the Kubernetes objects built from the instances of a bundle."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import yaml

from timoni.runtime import Runtime, RuntimeCluster

_FIRST_KINDS = (
    "CustomResourceDefinition",
    "Namespace",
    "ClusterClass",
    "RuntimeClass",
    "PriorityClass",
    "StorageClass",
    "VolumeSnapshotClass",
    "IngressClass",
    "GatewayClass",
    "ResourceQuota",
    "ServiceAccount",
    "Role",
    "ClusterRole",
    "RoleBinding",
    "ClusterRoleBinding",
    "ConfigMap",
    "Secret",
    "Service",
    "LimitRange",
    "Deployment",
    "StatefulSet",
    "CronJob",
    "PodDisruptionBudget",
)

_LAST_KINDS = (
    "MutatingWebhookConfiguration",
    "ValidatingWebhookConfiguration",
)


def select_build_cluster(runtime: Runtime, name: str, group: str) -> RuntimeCluster:
    """The single runtime cluster a bundle is built for.

    Raises ValueError when the selection matches no cluster or more than one.
    """
    clusters = runtime.select_clusters(name, group)
    if len(clusters) > 1:
        raise ValueError("you must select a cluster with --runtime-cluster")
    if not clusters:
        raise ValueError("no cluster found")
    return clusters[0]


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    metadata = obj.get("metadata")
    return metadata if isinstance(metadata, Mapping) else {}


def _kind_rank(kind: str) -> tuple[int, Any]:
    if kind in _FIRST_KINDS:
        return (0, _FIRST_KINDS.index(kind))
    if kind in _LAST_KINDS:
        return (2, _LAST_KINDS.index(kind))
    return (1, kind)


def _sort_key(obj: Mapping[str, Any]) -> tuple[Any, ...]:
    metadata = _metadata(obj)
    kind = str(obj.get("kind") or "")
    return (
        _kind_rank(kind),
        str(metadata.get("namespace") or ""),
        str(metadata.get("name") or ""),
    )


def _dump(obj: Mapping[str, Any]) -> str:
    return yaml.safe_dump(dict(obj), sort_keys=True, default_flow_style=False)


def render_instance_objects(objects: Iterable[Mapping[str, Any]]) -> str:
    """Render an instance's objects as YAML documents in apply order.

    Objects are ordered by kind (namespaces and definitions first, webhooks
    last), then namespace, then name, and separated by '---' lines.
    """
    ordered = sorted(objects, key=_sort_key)
    return "---\n".join(_dump(obj) for obj in ordered)


def render_bundle(rendered: Iterable[tuple[str, str]] | Mapping[str, str]) -> str:
    """Join the rendered output of each instance under an '# Instance: <name>' header."""
    pairs = list(rendered.items()) if isinstance(rendered, Mapping) else list(rendered)
    sections = [f"---\n# Instance: {name}\n---\n{text}" for name, text in pairs]
    return "\n".join(sections)