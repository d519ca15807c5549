"""Resolved data trees handed to output formats."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

NodeKind = Literal["module", "container", "list", "leaf", "leaf-list", "choice", "case"]


@dataclass
class YangType:
    """A type reference resolved down to its built-in base."""

    name: str
    base: str
    restrictions: dict[str, Any] = field(default_factory=dict)
    typedefs: list[str] = field(default_factory=list)
    default: str | None = None
    units: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "base": self.base}
        if self.typedefs:
            data["typedefs"] = list(self.typedefs)
        data.update(self.restrictions)
        if self.default is not None:
            data["default"] = self.default
        if self.units is not None:
            data["units"] = self.units
        return data


@dataclass
class Entry:
    """One node of a resolved module tree."""

    name: str
    node: NodeKind
    prefix: str
    namespace: str
    description: str | None = None
    config: bool = True
    type: YangType | None = None
    key: list[str] = field(default_factory=list)
    mandatory: bool = False
    default: str | None = None
    units: str | None = None
    presence: str | None = None
    min_elements: int | None = None
    max_elements: int | None = None
    ordered_by: str | None = None
    children: dict[str, Entry] = field(default_factory=dict)
    parent: Entry | None = field(default=None, repr=False, compare=False)

    @property
    def is_dir(self) -> bool:
        return self.node not in ("leaf", "leaf-list")

    @property
    def is_leaf(self) -> bool:
        return not self.is_dir

    @property
    def is_list(self) -> bool:
        return self.node in ("list", "leaf-list")

    @property
    def qualified_name(self) -> str:
        return f"{self.prefix}:{self.name}"

    def add(self, child: Entry) -> None:
        child.parent = self
        self.children[child.name] = child

    def root(self) -> Entry:
        entry = self
        while entry.parent is not None:
            entry = entry.parent
        return entry

    def path(self) -> str:
        """Return the schema path below the module, e.g. ``/if:interfaces/if:mtu``."""
        parts = []
        entry: Entry | None = self
        while entry is not None and entry.node != "module":
            parts.append(entry.qualified_name)
            entry = entry.parent
        return "/" + "/".join(reversed(parts))

    def data_path(self) -> str:
        """Like :meth:`path` but without choice and case segments."""
        parts = []
        entry: Entry | None = self
        while entry is not None and entry.node != "module":
            if entry.node not in ("choice", "case"):
                parts.append(entry.qualified_name)
            entry = entry.parent
        return "/" + "/".join(reversed(parts))

    def walk(self) -> Iterator[Entry]:
        """Yield this entry and every descendant, children in name order."""
        yield self
        for name in sorted(self.children):
            yield from self.children[name].walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "node": self.node,
            "prefix": self.prefix,
            "config": self.config,
        }
        if self.node == "module":
            data["namespace"] = self.namespace
        if self.description:
            data["description"] = self.description
        if self.type is not None:
            data["type"] = self.type.to_dict()
        if self.key:
            data["key"] = list(self.key)
        if self.mandatory:
            data["mandatory"] = True
        for attr in ("default", "units", "presence", "min_elements", "max_elements", "ordered_by"):
            value = getattr(self, attr)
            if value is not None:
                data[attr] = value
        if self.children:
            data["children"] = {
                name: self.children[name].to_dict() for name in sorted(self.children)
            }
        return data
