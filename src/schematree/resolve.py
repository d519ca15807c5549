"""Cross-module resolution: imports, includes, types, groupings and augments."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from .dsl import (
    BUILTIN_TYPES,
    Augment,
    CaseNode,
    ChoiceNode,
    ContainerNode,
    Document,
    Grouping,
    LeafListNode,
    LeafNode,
    ListNode,
    Module,
    Node,
    Restrictions,
    Typedef,
    UsesNode,
)
from .entry import Entry, YangType
from .errors import SchemaError

if TYPE_CHECKING:
    from .modules import ModelSet

log = logging.getLogger(__name__)

_T = TypeVar("_T")


class _Unresolved(Exception):
    """A reference that could not be resolved in the current context."""


def split_ref(ref: str) -> tuple[str | None, str]:
    """Split ``prefix:name`` into its parts; the prefix is optional."""
    prefix, sep, name = ref.partition(":")
    if not sep:
        return None, ref
    return prefix, name


@dataclass
class ModuleScope:
    """Everything visible from a module and its included submodules."""

    module: Module
    contexts: list[DocContext] = field(default_factory=list)
    typedefs: dict[str, tuple[Typedef, DocContext]] = field(default_factory=dict)
    groupings: dict[str, tuple[Grouping, DocContext]] = field(default_factory=dict)


@dataclass
class DocContext:
    """Name resolution state for one document (module or submodule)."""

    doc: Document
    scope: ModuleScope
    prefixes: dict[str, str] = field(default_factory=dict)

    def error(self, message: str) -> SchemaError:
        kind = "module" if isinstance(self.doc, Module) else "submodule"
        return SchemaError(self.doc.source, f"{kind} {self.doc.name}: {message}")


class Resolver:
    """Runs one processing pass over a model set.

    Scopes are collected first (pulling imported modules and included
    submodules from the search path as needed), then every module tree is
    built and finally augments are grafted on until no more apply.
    """

    def __init__(self, modelset: ModelSet) -> None:
        self.modelset = modelset
        self.errors: list[SchemaError] = []
        self.scopes: dict[str, ModuleScope] = {}
        self.entries: dict[str, Entry] = {}
        self._typedef_cache: dict[tuple[str, str], YangType | None] = {}

    def run(self) -> tuple[dict[str, Entry], list[SchemaError]]:
        pending = self._unscoped()
        while pending:
            name = pending.pop(0)
            if name not in self.scopes:
                module = self.modelset.module(name)
                if module is not None:
                    self.scopes[name] = self._collect_scope(module, pending)
            if not pending:
                # files pulled in by name may define modules nobody imports
                pending = self._unscoped()
        for name in sorted(self.scopes):
            self.entries[name] = self._build_tree(self.scopes[name])
        self._apply_augments()
        return self.entries, self.errors

    # Scope collection -------------------------------------------------

    def _unscoped(self) -> list[str]:
        return [
            module.name
            for module in self.modelset.top_level_modules()
            if module.name not in self.scopes
        ]

    def _collect_scope(self, module: Module, pending: list[str]) -> ModuleScope:
        scope = ModuleScope(module=module)
        docs: list[Document] = [module]
        included: set[str] = set()
        index = 0
        while index < len(docs):
            doc = docs[index]
            index += 1
            for name in doc.includes:
                if name in included:
                    continue
                included.add(name)
                sub = self._find(self.modelset.find_submodule, name)
                if sub is None:
                    self.errors.append(self._doc_error(doc, f"include {name}: submodule not found"))
                elif sub.belongs_to != module.name:
                    msg = f"include {name}: submodule belongs to {sub.belongs_to}"
                    self.errors.append(self._doc_error(doc, msg))
                else:
                    docs.append(sub)
        for doc in docs:
            ctx = DocContext(doc=doc, scope=scope, prefixes={doc.prefix: module.name})
            scope.contexts.append(ctx)
            self._bind_imports(ctx, pending)
            for typedef in doc.typedefs:
                if typedef.name in scope.typedefs:
                    self.errors.append(ctx.error(f"duplicate typedef {typedef.name}"))
                else:
                    scope.typedefs[typedef.name] = (typedef, ctx)
            for grouping in doc.groupings:
                if grouping.name in scope.groupings:
                    self.errors.append(ctx.error(f"duplicate grouping {grouping.name}"))
                else:
                    scope.groupings[grouping.name] = (grouping, ctx)
        log.debug("collected scope for %s (%d documents)", module.name, len(docs))
        return scope

    def _bind_imports(self, ctx: DocContext, pending: list[str]) -> None:
        for imp in ctx.doc.imports:
            if imp.prefix == ctx.doc.prefix:
                msg = f"import {imp.module}: prefix {imp.prefix} shadows the module prefix"
                self.errors.append(ctx.error(msg))
                continue
            if imp.prefix in ctx.prefixes:
                self.errors.append(ctx.error(f"import {imp.module}: duplicate prefix {imp.prefix}"))
                continue
            target = self._find(self.modelset.find_module, imp.module)
            if target is None:
                self.errors.append(ctx.error(f"import {imp.module}: module not found"))
                continue
            ctx.prefixes[imp.prefix] = imp.module
            if imp.module not in self.scopes:
                pending.append(imp.module)

    def _find(self, finder: Callable[[str], _T | None], name: str) -> _T | None:
        try:
            return finder(name)
        except SchemaError as exc:
            self.errors.append(exc)
            return None

    @staticmethod
    def _doc_error(doc: Document, message: str) -> SchemaError:
        kind = "module" if isinstance(doc, Module) else "submodule"
        return SchemaError(doc.source, f"{kind} {doc.name}: {message}")

    # Lookups ----------------------------------------------------------

    def _lookup(self, ctx: DocContext, ref: str, table: str, what: str):
        prefix, name = split_ref(ref)
        if prefix is None:
            scope = ctx.scope
        elif prefix in ctx.prefixes:
            scope = self.scopes.get(ctx.prefixes[prefix])
            if scope is None:
                raise _Unresolved(f"unknown {what} {ref}")
        else:
            raise _Unresolved(f"unknown prefix {prefix} in {what} {ref}")
        found = getattr(scope, table).get(name)
        if found is None:
            raise _Unresolved(f"unknown {what} {ref}")
        return found

    def _resolve_type(
        self,
        ref: str,
        ctx: DocContext,
        declared: Restrictions,
        stack: tuple[tuple[str, str], ...] = (),
    ) -> YangType | None:
        prefix, name = split_ref(ref)
        if prefix is None and name in BUILTIN_TYPES:
            resolved = YangType(name=ref, base=name)
        else:
            try:
                typedef, def_ctx = self._lookup(ctx, ref, "typedefs", "type")
            except _Unresolved as exc:
                self.errors.append(ctx.error(str(exc)))
                return None
            base = self._typedef_type(typedef, def_ctx, stack)
            if base is None:
                return None
            resolved = YangType(
                name=ref,
                base=base.base,
                restrictions=dict(base.restrictions),
                typedefs=[ref, *base.typedefs[1:]],
                default=base.default,
                units=base.units,
            )
        resolved.restrictions.update(declared.restriction_values())
        return resolved

    def _typedef_type(
        self,
        typedef: Typedef,
        ctx: DocContext,
        stack: tuple[tuple[str, str], ...] = (),
    ) -> YangType | None:
        """Resolve a typedef to its base, with its own restrictions applied."""
        key = (ctx.scope.module.name, typedef.name)
        if key in self._typedef_cache:
            return self._typedef_cache[key]
        if key in stack:
            self.errors.append(ctx.error(f"typedef {typedef.name} is recursive"))
            self._typedef_cache[key] = None
            return None
        inner = self._resolve_type(typedef.type, ctx, typedef, (*stack, key))
        if inner is None:
            resolved = None
        else:
            chain = [typedef.name, *inner.typedefs]
            resolved = YangType(
                name=typedef.name,
                base=inner.base,
                restrictions=inner.restrictions,
                typedefs=chain,
                default=typedef.default if typedef.default is not None else inner.default,
                units=typedef.units if typedef.units is not None else inner.units,
            )
        self._typedef_cache.setdefault(key, resolved)
        return self._typedef_cache[key]

    # Tree building ----------------------------------------------------

    def _build_tree(self, scope: ModuleScope) -> Entry:
        module = scope.module
        root = Entry(
            name=module.name,
            node="module",
            prefix=module.prefix,
            namespace=module.namespace,
            description=module.description,
        )
        for ctx in scope.contexts:
            self._add_nodes(root, ctx.doc.nodes, ctx, module)
        for typedef, ctx in scope.typedefs.values():
            self._typedef_type(typedef, ctx)
        return root

    def _add_nodes(
        self,
        parent: Entry,
        nodes: Sequence[Node],
        ctx: DocContext,
        owner: Module,
        stack: tuple[tuple[str, str], ...] = (),
    ) -> None:
        for node in nodes:
            if isinstance(node, UsesNode):
                self._expand_uses(parent, node, ctx, owner, stack)
                continue
            if isinstance(node, CaseNode) and parent.node != "choice":
                self.errors.append(ctx.error(f"case {node.name} must be inside a choice"))
                continue
            if parent.node == "choice" and not isinstance(node, CaseNode):
                self.errors.append(ctx.error(f"{node.kind} {node.name} in choice must be a case"))
                continue
            if node.name in parent.children:
                where = parent.path() if parent.node != "module" else parent.name
                self.errors.append(ctx.error(f"duplicate node {node.name} in {where}"))
                continue
            entry = self._make_entry(node, parent, ctx, owner)
            parent.add(entry)
            if isinstance(node, (ContainerNode, ListNode, CaseNode)):
                self._add_nodes(entry, node.nodes, ctx, owner, stack)
            elif isinstance(node, ChoiceNode):
                self._add_nodes(entry, node.cases, ctx, owner, stack)
            self._check_entry(node, entry, ctx)

    def _expand_uses(
        self,
        parent: Entry,
        node: UsesNode,
        ctx: DocContext,
        owner: Module,
        stack: tuple[tuple[str, str], ...],
    ) -> None:
        try:
            grouping, grouping_ctx = self._lookup(ctx, node.grouping, "groupings", "grouping")
        except _Unresolved as exc:
            self.errors.append(ctx.error(str(exc)))
            return
        key = (grouping_ctx.scope.module.name, grouping.name)
        if key in stack:
            self.errors.append(ctx.error(f"grouping {grouping.name} is recursive"))
            return
        self._add_nodes(parent, grouping.nodes, grouping_ctx, owner, (*stack, key))

    def _make_entry(self, node: Node, parent: Entry, ctx: DocContext, owner: Module) -> Entry:
        declared = getattr(node, "config", None)
        if declared and not parent.config:
            self.errors.append(ctx.error(f"{node.kind} {node.name}: config true under config false"))
        entry = Entry(
            name=node.name,
            node=node.kind,
            prefix=owner.prefix,
            namespace=owner.namespace,
            description=node.description,
            config=parent.config if declared is None else declared,
        )
        if isinstance(node, (LeafNode, LeafListNode)):
            entry.type = self._resolve_type(node.type, ctx, node)
            entry.units = node.units or (entry.type.units if entry.type else None)
        if isinstance(node, LeafNode):
            entry.mandatory = node.mandatory
            entry.default = node.default
            if entry.default is None and entry.type is not None and not node.mandatory:
                entry.default = entry.type.default
        elif isinstance(node, (ListNode, LeafListNode)):
            entry.min_elements = node.min_elements
            entry.max_elements = node.max_elements
            entry.ordered_by = node.ordered_by
            if isinstance(node, ListNode):
                entry.key = node.keys
        elif isinstance(node, ContainerNode):
            entry.presence = node.presence
        elif isinstance(node, ChoiceNode):
            entry.mandatory = node.mandatory
            entry.default = node.default
        return entry

    def _check_entry(self, node: Node, entry: Entry, ctx: DocContext) -> None:
        if isinstance(node, LeafNode) and node.mandatory and node.default is not None:
            self.errors.append(ctx.error(f"leaf {node.name}: mandatory leaf cannot have a default"))
        if isinstance(node, (LeafNode, LeafListNode)) and entry.type is not None:
            if entry.type.base == "enumeration" and not entry.type.restrictions.get("enums"):
                self.errors.append(ctx.error(f"{node.kind} {node.name}: enumeration requires enums"))
            if entry.type.base == "leafref" and not entry.type.restrictions.get("path"):
                self.errors.append(ctx.error(f"{node.kind} {node.name}: leafref requires a path"))
        if isinstance(node, ListNode):
            for key in node.keys:
                child = entry.children.get(key)
                if child is None or child.node != "leaf":
                    msg = f"list {node.name}: key {key} is not a leaf of the list"
                    self.errors.append(ctx.error(msg))
            if entry.config and not node.keys:
                self.errors.append(ctx.error(f"list {node.name}: configuration lists require a key"))
        if isinstance(node, ChoiceNode) and node.default is not None:
            if node.default not in entry.children:
                msg = f"choice {node.name}: default {node.default} is not a case"
                self.errors.append(ctx.error(msg))

    # Augments ---------------------------------------------------------

    def _apply_augments(self) -> None:
        pending: list[tuple[DocContext, Augment]] = [
            (ctx, augment)
            for name in sorted(self.scopes)
            for ctx in self.scopes[name].contexts
            for augment in ctx.doc.augments
        ]
        while pending:
            waiting: list[tuple[DocContext, Augment]] = []
            for ctx, augment in pending:
                try:
                    target = self._find_target(ctx, augment)
                except _Unresolved as exc:
                    self.errors.append(ctx.error(str(exc)))
                    continue
                if target is None:
                    waiting.append((ctx, augment))
                    continue
                log.debug("augmenting %s from %s", augment.target, ctx.doc.name)
                self._add_nodes(target, augment.nodes, ctx, ctx.scope.module)
            if len(waiting) == len(pending):
                for ctx, augment in waiting:
                    self.errors.append(ctx.error(f"augment target {augment.target} not found"))
                break
            pending = waiting

    def _find_target(self, ctx: DocContext, augment: Augment) -> Entry | None:
        """Walk an absolute path; ``None`` means a segment is not present yet."""
        current: Entry | None = None
        for segment in augment.segments:
            prefix, name = split_ref(segment)
            if prefix is None:
                module_name = ctx.scope.module.name
            elif prefix in ctx.prefixes:
                module_name = ctx.prefixes[prefix]
            else:
                raise _Unresolved(f"unknown prefix {prefix} in augment target {augment.target}")
            scope = self.scopes.get(module_name)
            if scope is None:
                raise _Unresolved(f"augment target {augment.target}: module {module_name} unavailable")
            if current is None:
                current = self.entries.get(module_name)
                if current is None:
                    return None
            child = current.children.get(name)
            if child is None or child.namespace != scope.module.namespace:
                return None
            current = child
        if current is None or current.is_leaf:
            raise _Unresolved(f"augment target {augment.target} is not a data node container")
        return current

