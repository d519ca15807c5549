"""Public API for downstream modules."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .config import DEFAULT_MODULES_FILE
from .dsl import Module, Submodule, parse_documents
from .entry import Entry
from .errors import SchemaError, SchemaErrors
from .modules import ModelSet

__all__ = [
    "Entry",
    "ModelSet",
    "Module",
    "Submodule",
    "SchemaError",
    "SchemaErrors",
    "get_module",
    "load_modules",
    "parse_documents",
    "top_level_entries",
]

log = logging.getLogger(__name__)


def load_modules(*sources: str, search_path: Iterable[str | Path] = ()) -> ModelSet:
    """Read every source and process the result, failing on any error."""
    modelset = ModelSet(search_path)
    errors: list[SchemaError] = []
    for source in sources:
        try:
            modelset.read(source)
        except SchemaError as exc:
            errors.append(exc)
    if errors:
        raise SchemaErrors(errors)
    errors = modelset.process()
    if errors:
        raise SchemaErrors(errors)
    return modelset


def top_level_entries(modelset: ModelSet) -> list[Entry]:
    """Trees for the first-loaded module of every name, sorted by name."""
    return [modelset.to_entry(module) for module in modelset.top_level_modules()]


def get_module(name: str, *sources: str, search_path: Iterable[str | Path] = ()) -> Entry:
    """Return the tree for module ``name``.

    ``sources`` are read first. When none of them defines ``name``, the
    ``MODULES.yaml`` file is read (from the working directory or search path)
    and then ``<name>.yaml`` is looked up on the search path. Raises
    :class:`SchemaErrors` for read failures, processing errors, or when the
    module cannot be found.
    """
    modelset = ModelSet(search_path)
    errors: list[SchemaError] = []
    for source in sources:
        try:
            modelset.read(source)
        except SchemaError as exc:
            errors.append(exc)
    if errors:
        raise SchemaErrors(errors)

    if modelset.module(name) is None:
        if modelset.locate(DEFAULT_MODULES_FILE) is not None:
            log.debug("%s not in sources, reading %s", name, DEFAULT_MODULES_FILE)
            try:
                modelset.read(DEFAULT_MODULES_FILE)
            except SchemaError as exc:
                raise SchemaErrors([exc]) from exc
        try:
            module = modelset.find_module(name)
        except SchemaError as exc:
            raise SchemaErrors([exc]) from exc
        if module is None:
            raise SchemaErrors([SchemaError("", f"module not found: {name}")])

    errors = modelset.process()
    if errors:
        raise SchemaErrors(errors)
    return modelset.to_entry(name)
