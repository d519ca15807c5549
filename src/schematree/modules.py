"""Accumulate schema documents from many sources into one model set."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .config import SCHEMA_SUFFIX
from .dsl import Document, Module, Submodule, parse_documents
from .entry import Entry
from .errors import SchemaError
from .resolve import Resolver

log = logging.getLogger(__name__)


class ModelSet:
    """Modules and submodules loaded for one run.

    Several records may share a module name; the first one loaded is the one
    used for processing, imports and trees. The set is frozen once
    :meth:`process` has run.
    """

    def __init__(self, search_path: Iterable[str | Path] = ()) -> None:
        self.search_path = [Path(entry) for entry in search_path]
        self.modules: list[Module] = []
        self.submodules: list[Submodule] = []
        self._errors: list[SchemaError] | None = None
        self._entries: dict[str, Entry] = {}
        self._searched: set[Path] = set()

    @property
    def processed(self) -> bool:
        return self._errors is not None

    def locate(self, name: str) -> Path | None:
        """Find ``name`` (or ``name`` plus the schema suffix) on disk.

        Each candidate is tried as given, then inside every search-path
        directory in order.
        """
        candidates = [name]
        if not name.endswith(SCHEMA_SUFFIX):
            candidates.append(name + SCHEMA_SUFFIX)
        for candidate in candidates:
            path = Path(candidate)
            if path.is_file():
                return path
            if path.is_absolute():
                continue
            for directory in self.search_path:
                found = directory / candidate
                if found.is_file():
                    return found
        return None

    def read(self, name: str) -> list[Document]:
        """Locate, read and parse one schema file."""
        self._ensure_open()
        path = self.locate(name)
        if path is None:
            raise SchemaError(name, "no such file")
        return self._read_path(path)

    def parse(self, text: str, source: str) -> list[Document]:
        """Parse ``text`` and add its documents to the set."""
        self._ensure_open()
        return self._add(parse_documents(text, source))

    def module(self, name: str) -> Module | None:
        """Return the first loaded module called ``name``."""
        return next((mod for mod in self.modules if mod.name == name), None)

    def submodule(self, name: str) -> Submodule | None:
        return next((sub for sub in self.submodules if sub.name == name), None)

    def find_module(self, name: str) -> Module | None:
        """Return module ``name``, loading ``<name>.yaml`` from the search path if needed."""
        found = self.module(name)
        if found is None and self._load_by_name(name):
            found = self.module(name)
        return found

    def find_submodule(self, name: str) -> Submodule | None:
        found = self.submodule(name)
        if found is None and self._load_by_name(name):
            found = self.submodule(name)
        return found

    def top_level_modules(self) -> list[Module]:
        """First-loaded module per distinct name, sorted by name."""
        first: dict[str, Module] = {}
        for module in self.modules:
            first.setdefault(module.name, module)
        return [first[name] for name in sorted(first)]

    def process(self) -> list[SchemaError]:
        """Resolve imports, includes, types, groupings and augments.

        Returns every problem found. Runs once; later calls return the same
        result.
        """
        if self._errors is None:
            self._entries, errors = Resolver(self).run()
            self._errors = errors
            log.debug(
                "processed %d modules with %d errors", len(self._entries), len(errors)
            )
        return list(self._errors)

    def to_entry(self, module: Module | str) -> Entry:
        """Return the resolved tree for ``module``.

        A duplicate record resolves to the tree of the first-loaded module of
        the same name.
        """
        if self._errors is None:
            raise RuntimeError("process() must run before to_entry()")
        name = module if isinstance(module, str) else module.name
        try:
            return self._entries[name]
        except KeyError:
            raise KeyError(f"module {name} is not part of this model set") from None

    def _ensure_open(self) -> None:
        if self._errors is not None:
            raise RuntimeError("model set is frozen once processed")

    def _load_by_name(self, name: str) -> bool:
        path = self.locate(name + SCHEMA_SUFFIX)
        if path is None or path.resolve() in self._searched:
            return False
        self._searched.add(path.resolve())
        log.debug("loading %s from %s", name, path)
        self._read_path(path)
        return True

    def _read_path(self, path: Path) -> list[Document]:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
            raise SchemaError(str(path), reason) from exc
        log.debug("read %s", path)
        return self._add(parse_documents(text, str(path)))

    def _add(self, documents: list[Document]) -> list[Document]:
        for doc in documents:
            if isinstance(doc, Module):
                first = self.module(doc.name)
                if first is not None:
                    log.debug(
                        "module %s from %s shadowed by %s", doc.name, doc.source, first.source
                    )
                self.modules.append(doc)
            else:
                self.submodules.append(doc)
        return documents
