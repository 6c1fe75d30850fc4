import pytest

from timoni.runtime import (
    RUNTIME_DEFAULT_NAME,
    Runtime,
    RuntimeAttribute,
    RuntimeCluster,
    RuntimeValue,
    default_runtime,
    is_runtime_attribute,
)


def test_parse_runtime_attribute():
    attr = RuntimeAttribute.parse("timoni", "runtime:string:DOMAIN")
    assert attr.name == "DOMAIN"
    assert attr.type == "string"


@pytest.mark.parametrize(
    "key,body",
    [
        ("other", "runtime:string:DOMAIN"),
        ("timoni", "runtime:string"),
        ("timoni", "env:string:DOMAIN"),
        ("timoni", "runtime:string:DOMAIN:extra"),
    ],
)
def test_invalid_runtime_attributes(key, body):
    assert is_runtime_attribute(key, body) is False
    with pytest.raises(ValueError, match="invalid format"):
        RuntimeAttribute.parse(key, body)


def test_is_runtime_attribute_true():
    assert is_runtime_attribute("timoni", "runtime:bool:ENABLED") is True


def test_default_runtime():
    rt = default_runtime("envtest")
    assert rt.name == RUNTIME_DEFAULT_NAME
    assert rt.refs == []
    assert len(rt.clusters) == 1
    cluster = rt.clusters[0]
    assert cluster.kube_context == "envtest"
    assert cluster.is_default() is True
    assert cluster.name_group_values() == {}


def test_name_group_values_for_named_cluster():
    cluster = RuntimeCluster(name="test", group="testing", kube_context="envtest")
    assert cluster.is_default() is False
    assert cluster.name_group_values() == {
        "TIMONI_CLUSTER_NAME": "test",
        "TIMONI_CLUSTER_GROUP": "testing",
    }


def _fleet():
    return Runtime(
        name="fleet-test",
        clusters=[
            RuntimeCluster(name="staging", group="staging", kube_context="envtest"),
            RuntimeCluster(name="production", group="production", kube_context="envtest"),
        ],
    )


def test_select_clusters_wildcards_match_all():
    rt = _fleet()
    assert rt.select_clusters("*", "*") == rt.clusters
    assert rt.select_clusters("", "") == rt.clusters


def test_select_clusters_by_group_case_insensitive():
    selected = _fleet().select_clusters("*", "PRODUCTION")
    assert [c.name for c in selected] == ["production"]


def test_select_clusters_no_match():
    assert _fleet().select_clusters("prod", "*") == []
    assert _fleet().select_clusters("*", "prod") == []


def test_to_resource_ref_with_namespace():
    rv = RuntimeValue(
        query="k8s:v1:Secret:kube-system:my-data",
        for_={"DOMAIN": "obj.data.domain", "ENABLED": "obj.data.enabled"},
        optional=True,
    )
    ref = rv.to_resource_ref()
    assert ref.api_version == "v1"
    assert ref.kind == "Secret"
    assert ref.namespace == "kube-system"
    assert ref.name == "my-data"
    assert ref.expressions == rv.for_
    assert ref.expressions is not rv.for_
    assert ref.optional is True


def test_to_resource_ref_cluster_scoped():
    ref = RuntimeValue(query="k8s:v1:Namespace:default").to_resource_ref()
    assert ref.namespace == ""
    assert ref.name == "default"
    assert ref.optional is False


def test_to_resource_ref_requires_k8s_prefix():
    with pytest.raises(ValueError, match="query must start with k8s"):
        RuntimeValue(query="env:v1:Secret:ns:name").to_resource_ref()


def test_to_resource_ref_requires_enough_parts():
    with pytest.raises(ValueError, match="invalid number of parts"):
        RuntimeValue(query="k8s:v1:Secret").to_resource_ref()