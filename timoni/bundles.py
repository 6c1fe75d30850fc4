"""Rules used when applying a bundle: module versions, digests, ownership and cluster values."""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import IO, Any

from timoni.api import LATEST_VERSION, ModuleReference
from timoni.instance import BundleInstance
from timoni.runtime import Runtime, RuntimeCluster

DEFAULT_RUNTIME_CLUSTER = "*"
DEFAULT_RUNTIME_GROUP = "*"

OWNERSHIP_HINT = 'Apply with "--overwrite-ownership" to gain instance ownership.'

_CHUNK_SIZE = 64 * 1024


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass(frozen=True)
class InstanceOwnershipConflict:
    """An existing instance that the bundle would take over from its current owner."""

    instance_name: str
    current_owner_bundle: str = ""

    def __str__(self) -> str:
        if self.current_owner_bundle:
            return (
                f"instance {_quote(self.instance_name)} exists and is managed by "
                f"another bundle {_quote(self.current_owner_bundle)}"
            )
        return f"instance {_quote(self.instance_name)} exists and is not managed by any bundle"


class InstanceOwnershipConflictError(Exception):
    """One or more instances are owned by something other than the bundle being applied."""

    def __init__(
        self, conflicts: Iterable[InstanceOwnershipConflict], hint: str = ""
    ) -> None:
        self.conflicts = list(conflicts)
        self.hint = hint
        message = "; ".join(str(conflict) for conflict in self.conflicts)
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class BundleDigestError(ValueError):
    """The fetched module digest differs from the digest pinned in the bundle."""

    def __init__(self, expected: str, actual: str, version: str) -> None:
        super().__init__(
            f"the upstream digest {actual} of version {version} "
            f"doesn't match the specified digest {expected}"
        )
        self.expected = expected
        self.actual = actual
        self.version = version


def bundle_module_version(module: ModuleReference) -> str:
    """The version to fetch for a bundle module: a pinned digest replaces 'latest'."""
    if module.version == LATEST_VERSION and module.digest:
        return f"@{module.digest}"
    return module.version


def verify_bundle_digest(module: ModuleReference, fetched: ModuleReference) -> ModuleReference:
    """Check a fetched module against the bundle's pinned digest and return the fetched one."""
    if module.digest and fetched.digest != module.digest:
        raise BundleDigestError(module.digest, fetched.digest, module.version)
    return fetched


def find_ownership_conflicts(
    instances: Iterable[BundleInstance],
    owners: Mapping[tuple[str, str], str],
) -> list[InstanceOwnershipConflict]:
    """Conflicts between bundle instances and existing ones.

    ``owners`` maps the (name, namespace) of each existing instance to the bundle
    that owns it, or to an empty string when no bundle does.
    """
    conflicts = []
    for instance in instances:
        key = (instance.name, instance.namespace)
        if key not in owners:
            continue
        current = owners[key] or ""
        if not current or current != instance.bundle:
            conflicts.append(
                InstanceOwnershipConflict(
                    instance_name=instance.name, current_owner_bundle=current
                )
            )
    return conflicts


def annotate_ownership_conflict(error: BaseException) -> BaseException:
    """Add the '--overwrite-ownership' hint to ownership conflicts; other errors pass through."""
    if isinstance(error, InstanceOwnershipConflictError):
        hint = f"{error.hint} {OWNERSHIP_HINT}" if error.hint else OWNERSHIP_HINT
        return InstanceOwnershipConflictError(error.conflicts, hint=hint)
    return error


def save_reader_to_file(reader: IO[Any]) -> str:
    """Copy a stream into a new temporary '.cue' file and return its path."""
    try:
        handle = tempfile.NamedTemporaryFile(mode="wb", suffix=".cue", delete=False)
    except OSError as err:
        raise OSError("unable to create temp dir for stdin") from err
    with handle:
        try:
            while True:
                chunk = reader.read(_CHUNK_SIZE)
                if not chunk:
                    break
                if isinstance(chunk, str):
                    chunk = chunk.encode("utf-8")
                handle.write(chunk)
        except OSError as err:
            raise OSError(f"error writing stdin to file: {err}") from err
    return handle.name


def replace_stdin_file(
    files: Sequence[str], reader: IO[Any]
) -> tuple[list[str], str | None]:
    """Replace the first '-' in the file list with a temporary copy of the reader.

    Returns the new file list and the temporary path, or None if no '-' was given.
    """
    result = list(files)
    try:
        position = result.index("-")
    except ValueError:
        return result, None
    path = save_reader_to_file(reader)
    result[position] = path
    return result, path


def cluster_values(
    env_values: Mapping[str, str],
    resource_values: Mapping[str, str],
    cluster: RuntimeCluster,
) -> dict[str, str]:
    """Runtime values for one cluster: environment, then cluster resources, then cluster info."""
    values = dict(env_values)
    values.update(resource_values)
    values.update(cluster.name_group_values())
    return values


def select_apply_clusters(runtime: Runtime, name: str, group: str) -> list[RuntimeCluster]:
    """The runtime clusters to apply to; raise if none match."""
    clusters = runtime.select_clusters(name, group)
    if not clusters:
        raise ValueError("no cluster found")
    return clusters


def apply_start_message(count: int, cluster: RuntimeCluster, dry_run: bool) -> str:
    """The message logged before the instances of a bundle are applied."""
    message = f"applying {count} instance(s)"
    if not cluster.is_default():
        message = f"{message} on {cluster.group}"
    if dry_run:
        message = f"{message} (server dry run)"
    return message


def remove_file(path: str | None) -> None:
    """Remove a temporary file if it exists."""
    if path and os.path.exists(path):
        os.remove(path)