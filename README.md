# timoni

The data model and build helpers behind Timoni: instances, bundles,
runtimes, values files and the rendering of built Kubernetes objects.

The package is a library with these modules:

- `timoni.api` – API constants (`GROUP_VERSION`, action annotations such as
  `PRUNE_ACTION`, artifact media types, `LATEST_VERSION`,
  `DEFAULT_IGNORE_PATTERNS`), the `Selector` and `GroupVersion` types, and the
  `ArtifactReference`, `ModuleReference`, `ImageReference`, `ResourceRef` and
  `ResourceInventory` records, each with `to_dict()` and `from_dict()`.
- `timoni.instance` – the `Instance` record (with `to_dict()` / `from_dict()`),
  `Bundle` and `BundleInstance`, plus the instance and bundle CUE selectors and
  schema texts.
- `timoni.runtime` – runtime attributes (`@timoni(runtime:[TYPE]:[NAME])`),
  `RuntimeCluster`, `RuntimeValue`, `RuntimeResourceRef`, `Runtime` with
  cluster selection, and `default_runtime()`.
- `timoni.apply` – which module version to fetch, the progress message shown
  before fetching, and digest checks (`DigestMismatchError`).
- `timoni.values` – reading values files and returning CUE source, and
  rendering objects as YAML documents or a JSON `List`.
- `timoni.bundles` – rules used when applying a bundle: module version for a
  pinned digest, digest checks (`BundleDigestError`), ownership conflicts
  (`InstanceOwnershipConflictError`), copying stdin to a temporary `.cue`
  file, per-cluster runtime values and cluster selection.
- `timoni.bundle_render` – choosing the single cluster a bundle is built for
  and rendering every instance's objects into one multi-document YAML stream.

## Requirements

Python 3.10 or later. The only runtime dependency is PyYAML.

## Examples

Runtime attributes:

```python
from timoni.runtime import RuntimeAttribute, is_runtime_attribute

is_runtime_attribute("timoni", "runtime:string:DOMAIN")   # True
attr = RuntimeAttribute.parse("timoni", "runtime:bool:ENABLED")
attr.type, attr.name                                      # ("bool", "ENABLED")
```

`RuntimeAttribute.parse` raises `ValueError` for any other form.

Runtime value queries in the form `k8s:<apiVersion>:<kind>:[<namespace>:]<name>`:

```python
from timoni.runtime import RuntimeValue

ref = RuntimeValue(query="k8s:v1:Secret:kube-system:data",
                   for_={"DOMAIN": "obj.data.domain"}).to_resource_ref()
ref.kind, ref.namespace, ref.name   # ("Secret", "kube-system", "data")
```

Cluster selection, where `""` or `*` matches any name or group and other
values match case-insensitively:

```python
from timoni.runtime import default_runtime

runtime = default_runtime("kind-dev")
clusters = runtime.select_clusters("*", "*")
clusters[0].is_default()          # True
clusters[0].name_group_values()   # {} for the default cluster
```

A named cluster yields `TIMONI_CLUSTER_NAME` and `TIMONI_CLUSTER_GROUP`.

Choosing which module version to fetch:

```python
from timoni.apply import resolve_version, pull_message, verify_digest

resolve_version("", "")                      # "latest"
resolve_version("", "sha256:abc")            # "@sha256:abc"
pull_message("oci://ghcr.io/org/app", "1.0.0")  # "pulling oci://ghcr.io/org/app:1.0.0"
verify_digest("sha256:abc", "sha256:def")    # raises DigestMismatchError
```

Values files:

```python
from timoni.values import convert_to_cue

cue_sources = convert_to_cue(["values.cue", "values.yaml", "values.json"])
```

CUE files are returned unchanged; YAML and JSON files are converted to CUE
text; `-` reads from the given stream or standard input. Any other extension
raises `ValuesFileError`.

Rendering built objects:

```python
from timoni.values import render_objects

objects = [{"apiVersion": "v1", "kind": "ConfigMap",
            "metadata": {"name": "app", "namespace": "apps"}}]
print(render_objects(objects, "yaml"))
print(render_objects(objects, "json"))
```

An output format other than `yaml` or `json` raises `ValueError`.

Bundle output, with objects ordered by kind (namespaces and definitions
first, webhooks last), then namespace and name:

```python
from timoni.bundle_render import render_bundle, render_instance_objects

text = render_bundle([("frontend", render_instance_objects(objects))])
```

## What this package does not do

It holds no command-line program. It does not evaluate CUE, fetch modules
from registries or disk, talk to a Kubernetes cluster, apply or delete
objects, or store instance inventories. Callers supply the built objects,
the fetched module references and the existing instance owners, and use
these helpers to decide versions, check digests, detect conflicts and
render output.