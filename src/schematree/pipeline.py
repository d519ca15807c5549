"""Run orchestration: input selection, loading, processing and rendering."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TextIO

from rich.console import Console

from .api import get_module
from .config import SCHEMA_SUFFIX, PipelineConfig
from .entry import Entry
from .errors import SchemaError, SchemaErrors
from .modules import ModelSet
from .plugins import Formatter, FormatRegistry

log = logging.getLogger(__name__)

STDIN_SOURCE = "<STDIN>"


class PipelineError(Exception):
    """Terminal failure; ``messages`` are reported one per line."""

    def __init__(self, messages: Sequence[object]) -> None:
        self.messages = [str(message) for message in messages]
        super().__init__("\n".join(self.messages))


@dataclass(frozen=True)
class InputRequest:
    """What the positional arguments ask for."""

    module: str | None = None
    files: list[str] = field(default_factory=list)

    @property
    def reads_stdin(self) -> bool:
        return self.module is None and not self.files


def resolve_input(args: Sequence[str]) -> InputRequest:
    """Classify ``args`` as a named-module request or a file list.

    A first argument without the schema suffix names a module; anything after
    it is an auxiliary file. Otherwise every argument is a file, and no
    arguments at all means standard input.
    """
    if args and not args[0].endswith(SCHEMA_SUFFIX):
        return InputRequest(module=args[0], files=list(args[1:]))
    return InputRequest(files=list(args))


class SchemaPipeline:
    """One run of load -> process -> resolve entries -> render."""

    def __init__(
        self,
        config: PipelineConfig,
        registry: FormatRegistry,
        console: Console | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=True, emoji=False
        )

    def check_format(self) -> Formatter:
        formatter = self.registry.lookup(self.config.format)
        if formatter is None:
            choices = ", ".join(self.registry.names())
            raise PipelineError([f"{self.config.format}: invalid format.  Choices are {choices}"])
        return formatter

    def report(self, message: object) -> None:
        self.console.print(str(message), markup=False, highlight=False, emoji=False)

    def load(self, request: InputRequest, stdin: TextIO | None = None) -> ModelSet:
        """Read a file list (or stdin) into a model set.

        Unreadable or malformed files are reported and skipped; a bad stdin
        is fatal since it is the only source.
        """
        modelset = ModelSet(self.config.search_path)
        if request.reads_stdin:
            stream = stdin if stdin is not None else sys.stdin
            try:
                text = stream.read()
            except (OSError, UnicodeDecodeError) as exc:
                reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
                raise PipelineError([SchemaError(STDIN_SOURCE, reason)]) from exc
            try:
                modelset.parse(text, STDIN_SOURCE)
            except SchemaError as exc:
                raise PipelineError([exc]) from exc
        for name in request.files:
            try:
                modelset.read(name)
            except SchemaError as exc:
                self.report(exc)
        return modelset

    def process(self, modelset: ModelSet) -> None:
        errors = modelset.process()
        if errors:
            raise PipelineError(errors)

    def resolve_entries(self, modelset: ModelSet) -> list[Entry]:
        modules = modelset.top_level_modules()
        log.debug("rendering modules: %s", ", ".join(module.name for module in modules))
        return [modelset.to_entry(module) for module in modules]

    def resolve_named(self, request: InputRequest) -> list[Entry]:
        if request.module is None:
            raise ValueError("resolve_named needs a module request")
        try:
            entry = get_module(
                request.module, *request.files, search_path=self.config.search_path
            )
        except SchemaErrors as exc:
            raise PipelineError(exc.errors) from exc
        return [entry]

    def dispatch(self, formatter: Formatter, entries: Sequence[Entry], out: TextIO) -> None:
        formatter.render(out, entries)

    def run(
        self,
        args: Sequence[str],
        out: TextIO | None = None,
        stdin: TextIO | None = None,
    ) -> list[Entry]:
        """Execute the whole pipeline and return the rendered entries.

        Raises :class:`PipelineError` for every terminal condition; nothing is
        written to ``out`` in that case.
        """
        formatter = self.check_format()
        request = resolve_input(args)
        if request.module is not None:
            entries = self.resolve_named(request)
        else:
            modelset = self.load(request, stdin)
            self.process(modelset)
            entries = self.resolve_entries(modelset)
        self.dispatch(formatter, entries, out if out is not None else sys.stdout)
        return entries
