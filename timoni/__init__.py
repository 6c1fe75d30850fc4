"""Data model and build helpers for Timoni modules, bundles, runtimes and rendered objects."""

__version__ = "0.1.0"

__all__ = [
    "api",
    "apply",
    "bundle_render",
    "bundles",
    "instance",
    "runtime",
    "values",
]