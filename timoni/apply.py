"""Version, digest and progress-message rules used when installing or upgrading an instance."""

from __future__ import annotations

from timoni.api import ARTIFACT_PREFIX, LATEST_VERSION


class DigestMismatchError(ValueError):
    """The fetched module digest differs from the one that was asked for."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"digest mismatch, expected {expected} got {actual}")
        self.expected = expected
        self.actual = actual


def resolve_version(version: str, digest: str) -> str:
    """The module version to fetch.

    An explicit version wins. Without one, a digest is fetched as '@<digest>',
    and with neither the latest version is used.
    """
    if version:
        return version
    if digest:
        return f"@{digest}"
    return LATEST_VERSION


def pull_message(module: str, version: str) -> str:
    """The progress message shown before a module is fetched or built."""
    if not module.startswith(ARTIFACT_PREFIX):
        return f"building {module}"
    if version.startswith("@"):
        return f"pulling {module}{version}"
    return f"pulling {module}:{version}"


def verify_digest(expected: str, actual: str) -> None:
    """Raise DigestMismatchError if a digest was asked for and differs from the fetched one."""
    if expected and actual != expected:
        raise DigestMismatchError(expected, actual)