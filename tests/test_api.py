import json

import pytest

from timoni.api import (
    FORCE_ACTION,
    GROUP_VERSION,
    PRUNE_ACTION,
    ArtifactReference,
    GroupVersion,
    ImageReference,
    ModuleReference,
    ResourceInventory,
    ResourceRef,
    Selector,
)


def test_selector_string_form():
    sel = Selector("timoni.apply")
    assert str(sel) == "timoni.apply"
    assert sel == "timoni.apply"


def test_group_version_string():
    assert str(GROUP_VERSION) == "timoni.sh/v1alpha1"
    assert str(GroupVersion(group="", version="v1")) == "v1"


def test_action_annotations_use_group():
    assert PRUNE_ACTION == "action.timoni.sh/prune"
    assert FORCE_ACTION.startswith(f"action.{GROUP_VERSION.group}/")


def test_artifact_reference_round_trip():
    ref = ArtifactReference(repository="oci://ghcr.io/org/repo", tag="1.0.0", digest="sha256:abc")
    data = ref.to_dict()
    assert data == {"repository": "oci://ghcr.io/org/repo", "tag": "1.0.0", "digest": "sha256:abc"}
    assert ArtifactReference.from_dict(json.loads(json.dumps(data))) == ref


def test_module_reference_omits_empty_annotations():
    ref = ModuleReference(name="app", repository="oci://r/app", version="1.0.0", digest="sha256:1")
    assert "annotations" not in ref.to_dict()


def test_module_reference_round_trip_with_annotations():
    ref = ModuleReference(
        name="app",
        repository="file://./module",
        version="latest",
        annotations={"org.opencontainers.image.source": "https://host/repo.git"},
    )
    data = ref.to_dict()
    assert data["annotations"] == {"org.opencontainers.image.source": "https://host/repo.git"}
    assert ModuleReference.from_dict(data) == ref


def test_module_reference_missing_fields_default_empty():
    ref = ModuleReference.from_dict({"name": "app"})
    assert ref.repository == ""
    assert ref.annotations == {}


def test_module_reference_rejects_non_string_annotation():
    with pytest.raises(TypeError):
        ModuleReference.from_dict({"annotations": {"a": 1}})


def test_image_reference_round_trip():
    ref = ImageReference(
        repository="docker.io/redis", tag="7", digest="sha256:d", reference="docker.io/redis:7@sha256:d"
    )
    assert ImageReference.from_dict(ref.to_dict()) == ref


def test_resource_ref_uses_short_version_key():
    ref = ResourceRef(id="default_app__ConfigMap", version="v1")
    assert ref.to_dict() == {"id": "default_app__ConfigMap", "v": "v1"}
    assert ResourceRef.from_dict({"id": "default_app__ConfigMap", "v": "v1"}) == ref


def test_inventory_round_trip_preserves_order():
    inv = ResourceInventory(
        entries=[
            ResourceRef(id="ns_b__ConfigMap", version="v1"),
            ResourceRef(id="ns_a_apps_Deployment", version="v1"),
        ]
    )
    restored = ResourceInventory.from_dict(json.loads(json.dumps(inv.to_dict())))
    assert restored == inv
    assert [e.id for e in restored.entries] == ["ns_b__ConfigMap", "ns_a_apps_Deployment"]


def test_inventory_null_entries_is_empty():
    assert ResourceInventory.from_dict({"entries": None}).entries == []


@pytest.mark.parametrize(
    "cls",
    [ArtifactReference, ModuleReference, ImageReference, ResourceRef, ResourceInventory],
)
def test_from_dict_rejects_non_mapping(cls):
    with pytest.raises(TypeError):
        cls.from_dict(["not", "a", "mapping"])


def test_inventory_rejects_non_list_entries():
    with pytest.raises(TypeError):
        ResourceInventory.from_dict({"entries": "x"})


def test_artifact_reference_rejects_non_string_field():
    with pytest.raises(TypeError):
        ArtifactReference.from_dict({"tag": 5})