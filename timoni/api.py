"""Core API types and constants for module artifacts, references and inventories."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class Selector(str):
    """A CUE path known to the module engine, such as ``timoni.apply``."""

    __slots__ = ()

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"Selector({str.__repr__(self)})"


@dataclass(frozen=True)
class GroupVersion:
    """An API group and version pair."""

    group: str
    version: str

    def __str__(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"


GROUP_VERSION = GroupVersion(group="timoni.sh", version="v1alpha1")

INSTANCE_KIND = "Instance"
INSTANCE_STORAGE_TYPE = "timoni.sh/instance"
FIELD_MANAGER = "timoni"

ENABLED_VALUE = "enabled"
DISABLED_VALUE = "disabled"

PRUNE_ACTION = f"action.{GROUP_VERSION.group}/prune"
FORCE_ACTION = f"action.{GROUP_VERSION.group}/force"
IF_NOT_PRESENT_ACTION = f"action.{GROUP_VERSION.group}/one-off"
WAIT_ACTION = f"action.{GROUP_VERSION.group}/wait"

ARTIFACT_PREFIX = "oci://"
LOCAL_PREFIX = "file://"
USER_AGENT = "timoni/v1"
CONFIG_MEDIA_TYPE = "application/vnd.timoni.config.v1+json"
CONTENT_MEDIA_TYPE = "application/vnd.timoni.content.v1.tar+gzip"
CONTENT_TYPE_ANNOTATION = "sh.timoni.content.type"
ANY_CONTENT_TYPE = ""
TIMONI_MOD_CONTENT_TYPE = "module"
TIMONI_MOD_VENDOR_CONTENT_TYPE = "module/vendor"
CUE_MOD_GEN_CONTENT_TYPE = "cue.mod/gen"
CUE_MOD_PKG_CONTENT_TYPE = "cue.mod/pkg"
SOURCE_ANNOTATION = "org.opencontainers.image.source"
REVISION_ANNOTATION = "org.opencontainers.image.revision"
VERSION_ANNOTATION = "org.opencontainers.image.version"
CREATED_ANNOTATION = "org.opencontainers.image.created"

LATEST_VERSION = "latest"

IGNORE_FILE = "timoni.ignore"
DEFAULT_IGNORE_PATTERNS = """# VCS
.git/
.gitignore
.gitmodules
.gitattributes

# Go
vendor/
go.mod
go.sum

# CUE
*_tool.cue
debug_values.cue
"""


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass
class ArtifactReference:
    """Location of an artifact in a container registry."""

    repository: str = ""
    tag: str = ""
    digest: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"repository": self.repository, "tag": self.tag, "digest": self.digest}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ArtifactReference:
        data = _mapping(data, "artifact reference")
        return cls(
            repository=_string(data, "repository"),
            tag=_string(data, "tag"),
            digest=_string(data, "digest"),
        )


@dataclass
class ModuleReference:
    """Location of a module artifact, in a registry or on the local disk."""

    name: str = ""
    repository: str = ""
    version: str = ""
    digest: str = ""
    annotations: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "repository": self.repository,
            "version": self.version,
            "digest": self.digest,
        }
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModuleReference:
        data = _mapping(data, "module reference")
        raw = data.get("annotations") or {}
        annotations = _mapping(raw, "annotations")
        for key, value in annotations.items():
            if not isinstance(value, str):
                raise TypeError(f"annotation {key!r} must be a string")
        return cls(
            name=_string(data, "name"),
            repository=_string(data, "repository"),
            version=_string(data, "version"),
            digest=_string(data, "digest"),
            annotations=dict(annotations),
        )


@dataclass
class ImageReference:
    """Location of a container image in a registry."""

    repository: str = ""
    tag: str = ""
    digest: str = ""
    reference: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository,
            "tag": self.tag,
            "digest": self.digest,
            "reference": self.reference,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ImageReference:
        data = _mapping(data, "image reference")
        return cls(
            repository=_string(data, "repository"),
            tag=_string(data, "tag"),
            digest=_string(data, "digest"),
            reference=_string(data, "reference"),
        )


@dataclass
class ResourceRef:
    """A Kubernetes object reference: ID '<namespace>_<name>_<group>_<kind>' and API version."""

    id: str = ""
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "v": self.version}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceRef:
        data = _mapping(data, "resource reference")
        return cls(id=_string(data, "id"), version=_string(data, "v"))


@dataclass
class ResourceInventory:
    """The Kubernetes objects managed by an instance."""

    entries: list[ResourceRef] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourceInventory:
        data = _mapping(data, "resource inventory")
        raw = data.get("entries") or []
        if not isinstance(raw, list):
            raise TypeError("field 'entries' must be a list")
        return cls(entries=[ResourceRef.from_dict(item) for item in raw])