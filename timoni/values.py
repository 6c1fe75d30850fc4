"""Values-file conversion to CUE and rendering of built Kubernetes objects."""

from __future__ import annotations

import json
import math
import re
import sys
from collections.abc import Iterable, Mapping, Sequence
from typing import IO, Any

import yaml


class ValuesFileError(ValueError):
    """A values file could not be read, parsed or converted."""


class _YamlLoader(yaml.SafeLoader):
    """A safe loader that keeps timestamps as plain strings."""


_YamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def _label(key: Any) -> str:
    if isinstance(key, bool):
        text = "true" if key else "false"
    elif key is None:
        text = "null"
    else:
        text = str(key)
    if _IDENTIFIER.match(text):
        return text
    return json.dumps(text, ensure_ascii=False)


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _format(value: Any, indent: int) -> str:
    if isinstance(value, Mapping):
        if not value:
            return "{}"
        inner = "\t" * (indent + 1)
        fields = [f"{inner}{_label(k)}: {_format(v, indent + 1)}" for k, v in value.items()]
        return "{\n" + "\n".join(fields) + "\n" + "\t" * indent + "}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if not any(_is_container(item) for item in value):
            return "[" + ", ".join(_format(item, indent) for item in value) + "]"
        inner = "\t" * (indent + 1)
        items = [f"{inner}{_format(item, indent + 1)}," for item in value]
        return "[\n" + "\n".join(items) + "\n" + "\t" * indent + "]"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"unsupported number {value!r}")
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise ValueError(f"unsupported value of type {type(value).__name__}")


def to_cue(data: Any) -> str:
    """Serialise decoded JSON or YAML data as CUE source."""
    if isinstance(data, Mapping):
        if not data:
            return ""
        return "".join(f"{_label(k)}: {_format(v, 0)}\n" for k, v in data.items())
    return _format(data, 0) + "\n"


def _extension(path: str) -> str:
    base = re.split(r"[\\/]", path)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _read_stdin(stdin: IO[Any] | None) -> bytes:
    stream = stdin if stdin is not None else sys.stdin.buffer
    data = stream.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def convert_to_cue(paths: Sequence[str], stdin: IO[Any] | None = None) -> list[bytes]:
    """Read values files (CUE, YAML or JSON; '-' for stdin) and return each as CUE source."""
    result: list[bytes] = []
    for path in paths:
        if path == "-":
            ext = ".cue"
            try:
                content = _read_stdin(stdin)
            except OSError as err:
                raise ValuesFileError(f"could not read values file at {path}: {err}") from err
        else:
            ext = _extension(path)
            try:
                with open(path, "rb") as handle:
                    content = handle.read()
            except OSError as err:
                raise ValuesFileError(f"could not read values file at {path}: {err}") from err

        if ext == ".cue":
            result.append(content)
            continue
        if ext == ".json":
            try:
                data = json.loads(content)
            except ValueError as err:
                raise ValuesFileError(f"could not extract JSON from {path}: {err}") from err
        elif ext in (".yaml", ".yml"):
            try:
                data = yaml.load(content, Loader=_YamlLoader)
            except yaml.YAMLError as err:
                raise ValuesFileError(f"could not extract YAML from {path}: {err}") from err
        else:
            raise ValuesFileError(f"unknown values file format for {path}")

        try:
            result.append(to_cue(data).encode("utf-8"))
        except ValueError as err:
            raise ValuesFileError(
                f"could not serialise value from file at {path} to cue: {err}"
            ) from err
    return result


def render_yaml(objects: Iterable[Mapping[str, Any]]) -> str:
    """Render objects as YAML documents, each followed by a '---' separator."""
    parts = []
    for obj in objects:
        parts.append(yaml.safe_dump(dict(obj), sort_keys=True, default_flow_style=False))
        parts.append("---\n")
    return "".join(parts)


def _sorted(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _sorted(value[k]) for k in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_sorted(item) for item in value]
    return value


def render_json(objects: Iterable[Mapping[str, Any]]) -> str:
    """Render objects as an indented Kubernetes 'List'."""
    items = [_sorted(obj) for obj in objects]
    document: dict[str, Any] = {"apiVersion": "v1", "kind": "List"}
    if items:
        document["items"] = items
    text = json.dumps(document, indent=4, ensure_ascii=False)
    for char, escaped in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def render_objects(objects: Iterable[Mapping[str, Any]], output: str) -> str:
    """Render objects in the given output format, 'yaml' or 'json'."""
    if output == "yaml":
        return render_yaml(objects)
    if output == "json":
        return render_json(objects)
    raise ValueError(f"unknown --output={output}, can be yaml or json")