"""
schematree
==========

Load YANG-style schema modules written in YAML, resolve them into data trees,
and render those trees through pluggable output formats.
"""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Return the installed package version or '0.0.0' when unavailable."""
    try:
        return version("schematree")
    except PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
