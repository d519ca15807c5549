"""Write the JSON Schema that module and submodule YAML files must satisfy.

Point a YAML language server at the output (``# yaml-language-server:
$schema=...``) to get completion for node kinds and early errors for unknown
keys, the same checks ``parse_documents`` applies when ``schematree`` loads a file.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import TypeAdapter

from schematree.dsl import Document

app = typer.Typer(help="Export JSON Schema for module and submodule documents.")


@app.command()
def main(
    out: Path = typer.Argument(..., help="Output path (usually .json)."),
    pretty: bool = typer.Option(True, help="Write pretty-printed JSON."),
) -> None:
    schema = TypeAdapter(Document).json_schema()
    schema.setdefault("title", "SchemaDocument")
    text = json.dumps(schema, indent=2 if pretty else None, sort_keys=False)
    out.write_text(text)
    typer.echo(f"Wrote document schema to {out}")


if __name__ == "__main__":
    app()
