"""Run configuration shared by the CLI and the pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

SCHEMA_SUFFIX = ".yaml"
DEFAULT_FORMAT = "tree"
DEFAULT_MODULES_FILE = "MODULES" + SCHEMA_SUFFIX


def split_path_list(values: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Split comma separated path entries, dropping blanks."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out: list[str] = []
    for value in values:
        out.extend(part.strip() for part in str(value).split(",") if part.strip())
    return out


class PipelineConfig(BaseModel):
    """Settings fixed before any schema input is read."""

    search_path: list[Path] = Field(default_factory=list)
    format: str = DEFAULT_FORMAT
    trace: Path | None = None
    verbose: bool = False

    model_config = {"frozen": True}

    @field_validator("search_path", mode="before")
    @classmethod
    def expand_search_path(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, list, tuple)):
            items = [value] if isinstance(value, str) else list(value)
            if all(isinstance(item, str) for item in items):
                return [Path(entry) for entry in split_path_list(items)]
        return value

    def with_paths(self, *entries: str) -> PipelineConfig:
        """Return a copy with ``entries`` appended to the search path."""
        extra = [Path(entry) for entry in split_path_list(list(entries))]
        return self.model_copy(update={"search_path": [*self.search_path, *extra]})
