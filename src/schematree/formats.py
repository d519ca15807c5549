"""Built-in output formats."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TextIO

import ujson as json
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from .entry import Entry, YangType
from .plugins import Formatter, FormatRegistry


def describe_entry(entry: Entry) -> str:
    """One-line summary: access, type, and the decorated qualified name."""
    parts = ["rw:" if entry.config else "RO:"]
    if entry.type is not None:
        parts.append(entry.type.name)
    name = entry.qualified_name
    if entry.node == "leaf-list":
        name = f"[]{name}"
    elif entry.node == "list":
        name = f"[{' '.join(entry.key)}]{name}"
    elif entry.node in ("choice", "case"):
        name = f"{entry.node} {name}"
    parts.append(name)
    return " ".join(parts)


def write_tree(out: TextIO, entry: Entry, depth: int = 0) -> None:
    pad = "  " * depth
    if entry.description:
        out.write("\n")
        for line in entry.description.strip().splitlines():
            out.write(f"{pad}// {line}\n")
    header = f"module {entry.name}" if entry.node == "module" else describe_entry(entry)
    if entry.is_leaf:
        out.write(f"{pad}{header}\n")
        return
    out.write(f"{pad}{header} {{\n")
    for name in sorted(entry.children):
        write_tree(out, entry.children[name], depth + 1)
    out.write(f"{pad}}}\n")


def render_tree(out: TextIO, entries: Sequence[Entry]) -> None:
    for entry in entries:
        write_tree(out, entry)


def render_json(out: TextIO, entries: Sequence[Entry]) -> None:
    payload = [entry.to_dict() for entry in entries]
    out.write(json.dumps(payload, indent=2, escape_forward_slashes=False))
    out.write("\n")


def render_paths(out: TextIO, entries: Sequence[Entry]) -> None:
    for entry in entries:
        for node in entry.walk():
            if node.node in ("module", "choice", "case"):
                continue
            line = f"{'rw' if node.config else 'RO'} {node.data_path()}"
            if node.type is not None:
                line += f" {node.type.name}"
            out.write(line + "\n")


def _format_type(ytype: YangType) -> str:
    text = ytype.base
    if len(ytype.typedefs) > 1:
        text = " -> ".join([*ytype.typedefs[1:], ytype.base])
    for key in sorted(ytype.restrictions):
        value = ytype.restrictions[key]
        if isinstance(value, list):
            value = "|".join(str(item) for item in value)
        text += f" {key}={value}"
    return text


def render_types(out: TextIO, entries: Sequence[Entry]) -> None:
    for entry in entries:
        used: dict[str, YangType] = {}
        for node in entry.walk():
            if node.type is not None:
                used.setdefault(node.type.name, node.type)
        out.write(f"module: {entry.name}\n")
        for name in sorted(used):
            out.write(f"  {name}: {_format_type(used[name])}\n")


def _grow(branch: Tree, entry: Entry) -> None:
    for name in sorted(entry.children):
        child = entry.children[name]
        label = escape(describe_entry(child))
        if not child.config:
            label = f"[dim]{label}[/dim]"
        _grow(branch.add(label), child)


def render_rich(out: TextIO, entries: Sequence[Entry]) -> None:
    console = Console(file=out, highlight=False, emoji=False)
    for entry in entries:
        tree = Tree(f"[bold]module[/bold] {escape(entry.name)}")
        _grow(tree, entry)
        console.print(tree)


BUILTIN_FORMATS = (
    Formatter("tree", render_tree, "indented tree of every module (default)"),
    Formatter("json", render_json, "module trees as JSON"),
    Formatter("paths", render_paths, "one line per data node: access, path and type"),
    Formatter("types", render_types, "types used by each module, resolved to built-ins"),
    Formatter("rich", render_rich, "tree view drawn with rich"),
)


def default_registry(load_plugins: bool = True) -> FormatRegistry:
    """Registry holding the built-in formats, plus installed plugins."""
    registry = FormatRegistry()
    for formatter in BUILTIN_FORMATS:
        registry.register(formatter)
    if load_plugins:
        registry.load_entry_points()
    return registry
