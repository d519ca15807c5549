"""Registry of output formats.

Formats are registered on an explicit :class:`FormatRegistry` before a run
starts. External packages can contribute formats through the
``schematree.formats`` entry-point group; each entry point must resolve to a
:class:`Formatter`.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from .entry import Entry

ENTRY_POINT_GROUP = "schematree.formats"


class Renderer(Protocol):
    """Callable that writes a sequence of module trees to ``out``."""

    def __call__(self, out: TextIO, entries: Sequence[Entry]) -> None:
        ...


@dataclass(frozen=True)
class Formatter:
    """A named renderer with the help line shown by ``--help``."""

    name: str
    render: Renderer
    help: str = ""


class FormatRegistry:
    """Mapping from format name to :class:`Formatter`."""

    def __init__(self) -> None:
        self._formatters: dict[str, Formatter] = {}

    def register(self, formatter: Formatter) -> FormatRegistry:
        """Add ``formatter``, replacing any format already using its name.

        The last registration for a name wins; collisions are not reported.
        Returns the registry so registrations can be chained.
        """
        self._formatters[formatter.name] = formatter
        return self

    def lookup(self, name: str) -> Formatter | None:
        """Return the formatter registered as ``name``, if any."""
        return self._formatters.get(name)

    def names(self) -> list[str]:
        """Return the registered format names, sorted."""
        return sorted(self._formatters)

    def load_entry_points(self, group: str = ENTRY_POINT_GROUP) -> FormatRegistry:
        """Register every :class:`Formatter` advertised under ``group``."""
        for point in entry_points(group=group):
            formatter = point.load()
            if not isinstance(formatter, Formatter):
                raise TypeError(f"entry point {point.name} does not provide a Formatter")
            self.register(formatter)
        return self

    def __contains__(self, name: object) -> bool:
        return name in self._formatters

    def __iter__(self) -> Iterator[Formatter]:
        return (self._formatters[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._formatters)
