"""Exceptions raised while loading and resolving schema modules."""

from __future__ import annotations

from collections.abc import Iterable


class SchemaError(Exception):
    """A problem located in one schema source."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source
        self.message = message


class SchemaErrors(Exception):
    """A batch of schema errors that ends the run."""

    def __init__(self, errors: Iterable[SchemaError]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(err) for err in self.errors))
