from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from conftest import ACME_INTERFACES, ACME_TYPES

from schematree.api import get_module, load_modules, top_level_entries
from schematree.errors import SchemaError, SchemaErrors
from schematree.modules import ModelSet


def _messages(text: str, write_schema: Callable[..., Path], name: str = "m.yaml") -> list[str]:
    path = write_schema(name, text)
    modelset = ModelSet()
    modelset.read(str(path))
    return [err.message for err in modelset.process()]


def test_imports_are_loaded_from_the_working_directory(acme: dict[str, Path]) -> None:
    modelset = load_modules(str(acme["interfaces"]))
    names = [module.name for module in modelset.top_level_modules()]
    assert names == ["acme-interfaces", "acme-types"]

    root = modelset.to_entry("acme-interfaces")
    interface = root.children["interfaces"].children["interface"]
    assert interface.key == ["name"]
    mtu = interface.children["mtu"]
    assert mtu.path() == "/if:interfaces/if:interface/if:mtu"
    assert mtu.type is not None
    assert mtu.type.base == "uint16"
    assert mtu.type.restrictions == {"range": "68..9000"}
    assert mtu.units == "bytes"
    enabled = interface.children["enabled"]
    assert enabled.default == "up"
    assert enabled.type.restrictions["enums"] == ["up", "down"]


def test_grouping_nodes_take_the_using_module_prefix(acme: dict[str, Path]) -> None:
    root = load_modules(str(acme["interfaces"])).to_entry("acme-interfaces")
    stats = root.children["interfaces"].children["interface"].children["stats"]
    octets = stats.children["in-octets"]
    assert stats.config is False
    assert octets.config is False
    assert octets.qualified_name == "if:in-octets"
    assert octets.namespace == "urn:acme:interfaces"


def test_search_path_is_used_for_imports(
    write_schema: Callable[..., Path], workdir: Path
) -> None:
    lib = workdir / "lib"
    write_schema("acme-types.yaml", ACME_TYPES, directory=lib)
    path = write_schema("acme-interfaces.yaml", ACME_INTERFACES)
    with pytest.raises(SchemaErrors) as excinfo:
        load_modules(str(path))
    assert [err.message for err in excinfo.value.errors][0] == (
        "module acme-interfaces: import acme-types: module not found"
    )
    modelset = load_modules(str(path), search_path=[lib])
    assert modelset.module("acme-types").source == str(lib / "acme-types.yaml")


def test_submodule_and_augment(acme: dict[str, Path]) -> None:
    modelset = load_modules(str(acme["system"]))
    system = modelset.to_entry("acme-system")
    assert sorted(system.children) == ["ntp", "system"]
    server = system.children["ntp"].children["server"]
    assert server.node == "leaf-list"
    assert server.qualified_name == "sys:server"

    interface = modelset.to_entry("acme-interfaces").children["interfaces"].children["interface"]
    added = interface.children["description"]
    assert added.qualified_name == "sys:description"
    assert added.namespace == "urn:acme:system"
    assert added.path() == "/if:interfaces/if:interface/sys:description"


def test_augments_apply_until_nothing_changes(write_schema: Callable[..., Path]) -> None:
    base = write_schema(
        "a-base.yaml",
        """
        module: a-base
        namespace: urn:base
        prefix: ab
        nodes:
          - kind: container
            name: top
        """,
    )
    write_schema(
        "z-ext.yaml",
        """
        module: z-ext
        namespace: urn:ext
        prefix: z
        imports:
          - module: a-base
            prefix: ab
        augments:
          - target: /ab:top
            nodes:
              - kind: container
                name: x
        """,
    )
    more = write_schema(
        "m-more.yaml",
        """
        module: m-more
        namespace: urn:more
        prefix: mm
        imports:
          - module: a-base
            prefix: ab
          - module: z-ext
            prefix: z
        augments:
          - target: /ab:top/z:x
            nodes:
              - kind: leaf
                name: y
                type: boolean
        """,
    )
    modelset = load_modules(str(base), str(more))
    top = modelset.to_entry("a-base").children["top"]
    assert top.children["x"].children["y"].path() == "/ab:top/z:x/mm:y"


def test_first_loaded_module_wins(write_schema: Callable[..., Path]) -> None:
    first = write_schema(
        "one.yaml", "module: dup\nnamespace: urn:one\nprefix: d\n"
    )
    second = write_schema(
        "two.yaml", "module: dup\nnamespace: urn:two\nprefix: d\n"
    )
    modelset = load_modules(str(first), str(second))
    assert len(modelset.modules) == 2
    (module,) = modelset.top_level_modules()
    assert module.source == str(first)
    assert modelset.to_entry(modelset.modules[1]).namespace == "urn:one"


def test_model_set_is_frozen_after_processing(write_schema: Callable[..., Path]) -> None:
    path = write_schema("m.yaml", "module: m\nnamespace: urn:m\nprefix: m\n")
    modelset = ModelSet()
    with pytest.raises(RuntimeError):
        modelset.to_entry("m")
    modelset.read(str(path))
    assert modelset.process() == []
    assert modelset.processed
    with pytest.raises(RuntimeError, match="frozen"):
        modelset.read(str(path))
    with pytest.raises(KeyError):
        modelset.to_entry("other")


def test_read_missing_file(workdir: Path) -> None:
    with pytest.raises(SchemaError, match="missing.yaml: no such file"):
        ModelSet().read("missing.yaml")


def test_locate_prefers_working_directory(
    write_schema: Callable[..., Path], workdir: Path
) -> None:
    lib = workdir / "lib"
    write_schema("m.yaml", "module: m\nnamespace: urn:lib\nprefix: m\n", directory=lib)
    modelset = ModelSet([lib])
    assert modelset.locate("m") == lib / "m.yaml"
    write_schema("m.yaml", "module: m\nnamespace: urn:cwd\nprefix: m\n")
    assert modelset.locate("m") == Path("m.yaml")
    assert modelset.locate("absent") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: leaf
                name: x
                type: m:nope
            """,
            "module m: unknown type m:nope",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: leaf
                name: x
                type: q:thing
            """,
            "module m: unknown prefix q in type q:thing",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            typedefs:
              - name: a
                type: b
              - name: b
                type: a
            """,
            "module m: typedef a is recursive",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            groupings:
              - name: g
                nodes:
                  - kind: container
                    name: c
                    nodes:
                      - kind: uses
                        grouping: g
            nodes:
              - kind: uses
                grouping: g
            """,
            "module m: grouping g is recursive",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: leaf
                name: x
                type: string
              - kind: leaf
                name: x
                type: string
            """,
            "module m: duplicate node x in m",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: list
                name: items
                nodes:
                  - kind: leaf
                    name: id
                    type: string
            """,
            "module m: list items: configuration lists require a key",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: list
                name: items
                key: id
                nodes:
                  - kind: container
                    name: id
            """,
            "module m: list items: key id is not a leaf of the list",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: leaf
                name: x
                type: string
                mandatory: true
                default: abc
            """,
            "module m: leaf x: mandatory leaf cannot have a default",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: leaf
                name: colour
                type: enumeration
            """,
            "module m: leaf colour: enumeration requires enums",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: case
                name: stray
            """,
            "module m: case stray must be inside a choice",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: choice
                name: mode
                default: slow
                cases:
                  - name: fast
            """,
            "module m: choice mode: default slow is not a case",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            nodes:
              - kind: container
                name: state
                config: false
                nodes:
                  - kind: leaf
                    name: x
                    type: string
                    config: true
            """,
            "module m: leaf x: config true under config false",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            augments:
              - target: /m:missing
                nodes:
                  - kind: leaf
                    name: x
                    type: string
            """,
            "module m: augment target /m:missing not found",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            imports:
              - module: nowhere
                prefix: n
            """,
            "module m: import nowhere: module not found",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            imports:
              - module: m
                prefix: m
            """,
            "module m: import m: prefix m shadows the module prefix",
        ),
        (
            """
            module: m
            namespace: urn:m
            prefix: m
            includes:
              - part
            ---
            submodule: part
            belongs-to: other
            prefix: m
            """,
            "module m: include part: submodule belongs to other",
        ),
    ],
)
def test_processing_errors(
    text: str, expected: str, write_schema: Callable[..., Path]
) -> None:
    assert _messages(text, write_schema) == [expected]


def test_processing_errors_name_the_source(write_schema: Callable[..., Path]) -> None:
    path = write_schema(
        "m.yaml",
        """
        module: m
        namespace: urn:m
        prefix: m
        nodes:
          - kind: leaf
            name: x
            type: nope
        """,
    )
    modelset = ModelSet()
    modelset.read(str(path))
    (error,) = modelset.process()
    assert str(error) == f"{path}: module m: unknown type nope"


def test_top_level_entries_are_sorted(acme: dict[str, Path]) -> None:
    modelset = load_modules(str(acme["types"]), str(acme["interfaces"]))
    assert [entry.name for entry in top_level_entries(modelset)] == [
        "acme-interfaces",
        "acme-types",
    ]


def test_get_module_from_sources(acme: dict[str, Path]) -> None:
    entry = get_module("acme-types", str(acme["interfaces"]))
    assert entry.name == "acme-types"
    assert entry.node == "module"


def test_get_module_reads_modules_file(write_schema: Callable[..., Path]) -> None:
    write_schema(
        "MODULES.yaml",
        """
        module: bundle
        namespace: urn:bundle
        prefix: b
        nodes:
          - kind: leaf
            name: flag
            type: boolean
        ---
        module: other
        namespace: urn:other
        prefix: o
        """,
    )
    entry = get_module("bundle")
    assert list(entry.children) == ["flag"]


def test_get_module_from_search_path(
    write_schema: Callable[..., Path], workdir: Path
) -> None:
    lib = workdir / "lib"
    write_schema("solo.yaml", "module: solo\nnamespace: urn:solo\nprefix: s\n", directory=lib)
    assert get_module("solo", search_path=[lib]).namespace == "urn:solo"


def test_get_module_not_found(workdir: Path) -> None:
    with pytest.raises(SchemaErrors) as excinfo:
        get_module("ghost")
    assert [str(err) for err in excinfo.value.errors] == ["module not found: ghost"]


def test_get_module_reports_unreadable_sources(workdir: Path) -> None:
    with pytest.raises(SchemaErrors) as excinfo:
        get_module("ghost", "missing.yaml")
    assert [str(err) for err in excinfo.value.errors] == ["missing.yaml: no such file"]


def test_modules_riding_along_with_an_import_are_processed(
    write_schema: Callable[..., Path],
) -> None:
    write_schema(
        "lib-a.yaml",
        """
        module: lib-a
        namespace: urn:lib-a
        prefix: la
        ---
        module: lib-extra
        namespace: urn:lib-extra
        prefix: lx
        nodes:
          - kind: leaf
            name: flag
            type: boolean
        """,
    )
    main = write_schema(
        "main.yaml",
        """
        module: main
        namespace: urn:main
        prefix: mn
        imports:
          - module: lib-a
            prefix: la
        """,
    )
    modelset = load_modules(str(main))
    assert [entry.name for entry in top_level_entries(modelset)] == [
        "lib-a",
        "lib-extra",
        "main",
    ]
    assert list(modelset.to_entry("lib-extra").children) == ["flag"]


def test_get_module_absent_from_modules_file(write_schema: Callable[..., Path]) -> None:
    write_schema("MODULES.yaml", "module: other\nnamespace: urn:other\nprefix: o\n")
    with pytest.raises(SchemaErrors) as excinfo:
        get_module("ghost")
    assert [str(err) for err in excinfo.value.errors] == ["module not found: ghost"]
