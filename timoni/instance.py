"""Instance and bundle records, and the CUE selectors and schemas that describe them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from timoni.api import ModuleReference, ResourceInventory, Selector

API_VERSION_SELECTOR = Selector("timoni.apiVersion")
INSTANCE_SELECTOR = Selector("timoni.instance")
CONFIG_VALUES_SELECTOR = Selector("timoni.instance.config")
APPLY_SELECTOR = Selector("timoni.apply")
VALUES_SELECTOR = Selector("values")

BUNDLE_API_VERSION_SELECTOR = Selector("bundle.apiVersion")
BUNDLE_NAME = Selector("bundle.name")
BUNDLE_INSTANCES_SELECTOR = Selector("bundle.instances")
BUNDLE_MODULE_URL_SELECTOR = Selector("module.url")
BUNDLE_MODULE_VERSION_SELECTOR = Selector("module.version")
BUNDLE_MODULE_DIGEST_SELECTOR = Selector("module.digest")
BUNDLE_NAMESPACE_SELECTOR = Selector("namespace")
BUNDLE_VALUES_SELECTOR = Selector("values")

BUNDLE_NAME_LABEL_KEY = "bundle.timoni.sh/name"

INSTANCE_SCHEMA = """
#Timoni: {
	apiVersion: string & =~"^v1alpha1$"
	instance: {...}
	apply: [string]: [...]
	kubeMinorVersion?: int
}

timoni: #Timoni
"""

BUNDLE_SCHEMA = """
import "strings"

#Bundle: {
	apiVersion: string & =~"^v1alpha1$"
	name:       string & =~"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)
	instances: [string & =~"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)]: {
		module: close({
			url:     string & =~"^(oci|file)://.*$"
			version: *"latest" | string
			digest?: string
		})
		namespace: string & =~"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)
		values: {...}
	}
}

bundle: #Bundle
"""


def _as_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _as_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _as_str_map(data: Mapping[str, Any], key: str) -> dict[str, str]:
    raw = _as_mapping(data.get(key) or {}, key)
    for name, value in raw.items():
        if not isinstance(value, str):
            raise TypeError(f"{key} entry {name!r} must be a string")
    return dict(raw)


@dataclass
class Instance:
    """A module instance: its module, values and the Kubernetes objects it manages."""

    name: str = ""
    namespace: str = ""
    api_version: str = ""
    kind: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    module: ModuleReference = field(default_factory=ModuleReference)
    values: str = ""
    last_transition_time: str = ""
    inventory: ResourceInventory | None = None
    images: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.api_version:
            result["apiVersion"] = self.api_version
        if self.kind:
            result["kind"] = self.kind
        metadata: dict[str, Any] = {}
        if self.name:
            metadata["name"] = self.name
        if self.namespace:
            metadata["namespace"] = self.namespace
        if self.labels:
            metadata["labels"] = dict(self.labels)
        if self.annotations:
            metadata["annotations"] = dict(self.annotations)
        result["metadata"] = metadata
        result["module"] = self.module.to_dict()
        result["values"] = self.values
        if self.last_transition_time:
            result["lastTransitionTime"] = self.last_transition_time
        if self.inventory is not None:
            result["inventory"] = self.inventory.to_dict()
        if self.images:
            result["images"] = list(self.images)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Instance:
        data = _as_mapping(data, "instance")
        metadata = _as_mapping(data.get("metadata") or {}, "metadata")
        raw_inventory = data.get("inventory")
        inventory = (
            ResourceInventory.from_dict(raw_inventory) if raw_inventory is not None else None
        )
        raw_images = data.get("images") or []
        if not isinstance(raw_images, list) or not all(isinstance(i, str) for i in raw_images):
            raise TypeError("field 'images' must be a list of strings")
        return cls(
            name=_as_str(metadata, "name"),
            namespace=_as_str(metadata, "namespace"),
            api_version=_as_str(data, "apiVersion"),
            kind=_as_str(data, "kind"),
            labels=_as_str_map(metadata, "labels"),
            annotations=_as_str_map(metadata, "annotations"),
            module=ModuleReference.from_dict(data.get("module") or {}),
            values=_as_str(data, "values"),
            last_transition_time=_as_str(data, "lastTransitionTime"),
            inventory=inventory,
            images=list(raw_images),
        )


@dataclass
class BundleInstance:
    """One instance declared in a bundle: name, namespace, module and values."""

    bundle: str = ""
    name: str = ""
    namespace: str = ""
    module: ModuleReference = field(default_factory=ModuleReference)
    values: Any = None
    cluster: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"bundle": self.bundle}
        if self.cluster:
            result["cluster"] = self.cluster
        result["name"] = self.name
        result["namespace"] = self.namespace
        result["module"] = self.module.to_dict()
        if self.values is not None:
            result["values"] = self.values
        return result


@dataclass
class Bundle:
    """A named set of instances."""

    name: str = ""
    instances: list[BundleInstance] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "instances": [instance.to_dict() for instance in self.instances],
        }