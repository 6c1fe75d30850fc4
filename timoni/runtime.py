"""Runtime definitions: target clusters and in-cluster value queries."""

from __future__ import annotations

from dataclasses import dataclass, field

from timoni.api import FIELD_MANAGER, Selector

RUNTIME_KIND = "runtime"
RUNTIME_DEFAULT_NAME = "_default"
RUNTIME_DELIMITER = ":"

RUNTIME_API_VERSION_SELECTOR = Selector("runtime.apiVersion")
RUNTIME_NAME = Selector("runtime.name")
RUNTIME_CLUSTERS_SELECTOR = Selector("runtime.clusters")
RUNTIME_VALUES_SELECTOR = Selector("runtime.values")

RUNTIME_SCHEMA = """
import "strings"

#RuntimeValue: {
	query: string
	for: {[string & =~"^(([A-Za-z0-9][-A-Za-z0-9_]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)]: string}
	optional: *false | bool
}

#Runtime: {
	apiVersion: string & =~"^v1alpha1$"
	name:       string & =~"^(([A-Za-z0-9][-A-Za-z0-9_]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)

	clusters?: [string & =~"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$" & strings.MaxRunes(63) & strings.MinRunes(1)]: {
		group!:       string
		kubeContext!: string
	}
	
	values?: [...#RuntimeValue]
}
"""


def is_runtime_attribute(key: str, body: str) -> bool:
    """Tell whether a CUE attribute has the form @timoni(runtime:[TYPE]:[NAME])."""
    if key != FIELD_MANAGER:
        return False
    parts = body.split(RUNTIME_DELIMITER)
    return len(parts) == 3 and parts[0] == RUNTIME_KIND


@dataclass(frozen=True)
class RuntimeAttribute:
    """A runtime variable name and type taken from a CUE attribute."""

    name: str
    type: str

    @classmethod
    def parse(cls, key: str, body: str) -> RuntimeAttribute:
        if not is_runtime_attribute(key, body):
            raise ValueError(
                f"invalid format, must be @timoni({RUNTIME_KIND}{RUNTIME_DELIMITER}"
                f"[TYPE]{RUNTIME_DELIMITER}[NAME])"
            )
        _, type_, name = body.split(RUNTIME_DELIMITER)
        return cls(name=name, type=type_)


@dataclass
class RuntimeCluster:
    """A Kubernetes cluster reference."""

    name: str = ""
    group: str = ""
    kube_context: str = ""

    def is_default(self) -> bool:
        """True if the cluster comes from a runtime with no target clusters."""
        return self.name == RUNTIME_DEFAULT_NAME

    def name_group_values(self) -> dict[str, str]:
        """The cluster name and group variables; empty for the default cluster."""
        if self.is_default():
            return {}
        return {"TIMONI_CLUSTER_NAME": self.name, "TIMONI_CLUSTER_GROUP": self.group}


@dataclass
class RuntimeResourceRef:
    """An in-cluster object and the CUE expressions that extract its fields."""

    api_version: str = ""
    kind: str = ""
    name: str = ""
    namespace: str = ""
    expressions: dict[str, str] = field(default_factory=dict)
    optional: bool = False


@dataclass
class RuntimeValue:
    """A query for in-cluster values, 'k8s:<apiVersion>:<kind>:<namespace>:<name>'."""

    query: str = ""
    for_: dict[str, str] = field(default_factory=dict)
    optional: bool = False

    def to_resource_ref(self) -> RuntimeResourceRef:
        parts = self.query.split(RUNTIME_DELIMITER)
        if parts[0] != "k8s":
            raise ValueError(f"faild to parse '{self.query}': query must start with k8s")
        if len(parts) < 4:
            raise ValueError(f"faild to parse '{self.query}': invalid number of parts")

        if len(parts) == 5:
            namespace, name = parts[3], parts[4]
        else:
            namespace, name = "", parts[3]

        return RuntimeResourceRef(
            api_version=parts[1],
            kind=parts[2],
            name=name,
            namespace=namespace,
            expressions=dict(self.for_),
            optional=self.optional,
        )


@dataclass
class Runtime:
    """Target clusters and the in-cluster resources to read values from."""

    name: str = ""
    clusters: list[RuntimeCluster] = field(default_factory=list)
    refs: list[RuntimeResourceRef] = field(default_factory=list)

    def select_clusters(self, name: str, group: str) -> list[RuntimeCluster]:
        """Clusters matching name and group, case-insensitively; '' or '*' match all."""

        def matches(pattern: str, value: str) -> bool:
            return pattern in ("", "*") or pattern.casefold() == value.casefold()

        return [
            cluster
            for cluster in self.clusters
            if matches(name, cluster.name) and matches(group, cluster.group)
        ]


def default_runtime(kube_context: str) -> Runtime:
    """An empty runtime with one unnamed cluster set to the given context."""
    cluster = RuntimeCluster(
        name=RUNTIME_DEFAULT_NAME,
        group=RUNTIME_DEFAULT_NAME,
        kube_context=kube_context,
    )
    return Runtime(name=RUNTIME_DEFAULT_NAME, clusters=[cluster], refs=[])