"""Typed YAML documents describing schema modules and submodules."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal

import yaml
from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    PrivateAttr,
    ValidationError,
    model_validator,
)

from .errors import SchemaError

Identifier = Annotated[str, Field(pattern=r"^[A-Za-z_][A-Za-z0-9_.-]*$")]


def _scalar_text(value: Any) -> Any:
    # YAML reads 2024-01-01, 1500 and true as date, int and bool
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        return str(value)
    return value


Text = Annotated[str, BeforeValidator(_scalar_text)]

BUILTIN_TYPES = frozenset(
    {
        "binary",
        "bits",
        "boolean",
        "decimal64",
        "empty",
        "enumeration",
        "identityref",
        "instance-identifier",
        "int8",
        "int16",
        "int32",
        "int64",
        "leafref",
        "string",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "union",
    }
)


class Restrictions(BaseModel):
    """Type restrictions shared by typedefs and typed nodes."""

    enums: list[Text] | None = None
    range: Text | None = None
    length: Text | None = None
    pattern: str | None = None
    path: str | None = None

    model_config = {"populate_by_name": True, "extra": "forbid"}

    def restriction_values(self) -> dict[str, Any]:
        return {
            key: getattr(self, key)
            for key in ("enums", "range", "length", "pattern", "path")
            if getattr(self, key) is not None
        }


class Typedef(Restrictions):
    """Named derived type."""

    name: Identifier
    type: str
    description: str | None = None
    default: Text | None = None
    units: Text | None = None


class ContainerNode(BaseModel):
    """Interior node grouping child nodes."""

    kind: Literal["container"] = "container"
    name: Identifier
    description: str | None = None
    config: bool | None = None
    presence: str | None = None
    nodes: list[Node] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}


class ListNode(BaseModel):
    """Keyed sequence of child node sets."""

    kind: Literal["list"] = "list"
    name: Identifier
    description: str | None = None
    config: bool | None = None
    key: str | None = None
    min_elements: int | None = Field(default=None, ge=0, alias="min-elements")
    max_elements: int | None = Field(default=None, gt=0, alias="max-elements")
    ordered_by: Literal["system", "user"] = Field(default="system", alias="ordered-by")
    nodes: list[Node] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @model_validator(mode="after")
    def validate_bounds(self) -> ListNode:
        if (
            self.min_elements is not None
            and self.max_elements is not None
            and self.min_elements > self.max_elements
        ):
            raise ValueError("min-elements cannot exceed max-elements")
        return self

    @property
    def keys(self) -> list[str]:
        return self.key.split() if self.key else []


class LeafNode(Restrictions):
    """Single typed value."""

    kind: Literal["leaf"] = "leaf"
    name: Identifier
    type: str
    description: str | None = None
    config: bool | None = None
    mandatory: bool = False
    default: Text | None = None
    units: Text | None = None


class LeafListNode(Restrictions):
    """Sequence of typed values."""

    kind: Literal["leaf-list"] = "leaf-list"
    name: Identifier
    type: str
    description: str | None = None
    config: bool | None = None
    min_elements: int | None = Field(default=None, ge=0, alias="min-elements")
    max_elements: int | None = Field(default=None, gt=0, alias="max-elements")
    ordered_by: Literal["system", "user"] = Field(default="system", alias="ordered-by")
    units: Text | None = None


class CaseNode(BaseModel):
    """One alternative branch of a choice."""

    kind: Literal["case"] = "case"
    name: Identifier
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}


class ChoiceNode(BaseModel):
    """Mutually exclusive set of cases."""

    kind: Literal["choice"] = "choice"
    name: Identifier
    description: str | None = None
    config: bool | None = None
    mandatory: bool = False
    default: str | None = None
    cases: list[CaseNode] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}


class UsesNode(BaseModel):
    """Reference to a grouping whose nodes are copied in place."""

    kind: Literal["uses"] = "uses"
    grouping: str
    description: str | None = None

    model_config = {"populate_by_name": True, "extra": "forbid"}


Node = Annotated[
    ContainerNode | ListNode | LeafNode | LeafListNode | ChoiceNode | CaseNode | UsesNode,
    Field(discriminator="kind"),
]


class Grouping(BaseModel):
    """Reusable set of nodes."""

    name: Identifier
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}


class Import(BaseModel):
    """Dependency on another module, referenced through ``prefix``."""

    module: Identifier
    prefix: Identifier

    model_config = {"extra": "forbid"}


class Augment(BaseModel):
    """Nodes grafted onto an absolute schema path, possibly in another module."""

    target: str
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @model_validator(mode="after")
    def validate_target(self) -> Augment:
        if not self.target.startswith("/") or self.target.strip() == "/":
            raise ValueError(f"augment target must be an absolute path: {self.target!r}")
        return self

    @property
    def segments(self) -> list[str]:
        return [part for part in self.target.split("/") if part]


class _Document(BaseModel):
    """Body shared by module and submodule documents."""

    prefix: Identifier
    organization: str | None = None
    contact: str | None = None
    description: str | None = None
    revision: Text | None = None
    imports: list[Import] = Field(default_factory=list)
    includes: list[Identifier] = Field(default_factory=list)
    typedefs: list[Typedef] = Field(default_factory=list)
    groupings: list[Grouping] = Field(default_factory=list)
    nodes: list[Node] = Field(default_factory=list)
    augments: list[Augment] = Field(default_factory=list)
    _source: str = PrivateAttr(default="")

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @property
    def source(self) -> str:
        """File (or stream label) the document was parsed from."""
        return self._source

    @property
    def import_prefixes(self) -> dict[str, str]:
        return {imp.prefix: imp.module for imp in self.imports}


class Module(_Document):
    """Top-level named schema definition."""

    name: Identifier = Field(alias="module")
    namespace: str


class Submodule(_Document):
    """Fragment of a module, pulled in through ``includes``."""

    name: Identifier = Field(alias="submodule")
    belongs_to: Identifier = Field(alias="belongs-to")


Document = Module | Submodule

for _model in (ContainerNode, ListNode, CaseNode, ChoiceNode, Grouping, Augment, Module, Submodule):
    _model.model_rebuild()


def _describe_validation(exc: ValidationError) -> str:
    issues = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        issues.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(issues)


def parse_documents(text: str, source: str) -> list[Document]:
    """Parse every YAML document in ``text`` into a module or submodule.

    All documents are validated before anything is returned, so a source with
    one bad document yields no documents at all.
    """
    try:
        raw = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f"{source}:{mark.line + 1}" if mark is not None else source
        problem = getattr(exc, "problem", None) or str(exc)
        raise SchemaError(where, f"invalid YAML: {problem}") from exc
    if not raw:
        raise SchemaError(source, "no module or submodule documents found")
    documents: list[Document] = []
    for index, data in enumerate(raw):
        label = source if len(raw) == 1 else f"{source}[{index}]"
        if not isinstance(data, dict):
            raise SchemaError(label, "document must be a mapping")
        if "module" in data:
            model: type[Module] | type[Submodule] = Module
        elif "submodule" in data:
            model = Submodule
        else:
            raise SchemaError(label, "document must declare 'module' or 'submodule'")
        try:
            doc = model.model_validate(data)
        except ValidationError as exc:
            name = data.get("module") or data.get("submodule")
            kind = model.__name__.lower()
            raise SchemaError(label, f"{kind} {name}: {_describe_validation(exc)}") from exc
        doc._source = source
        documents.append(doc)
    return documents
