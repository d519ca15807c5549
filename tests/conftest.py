from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

ACME_TYPES = """
module: acme-types
namespace: urn:acme:types
prefix: at
revision: 2024-03-01
typedefs:
  - name: mtu
    type: uint16
    range: 68..9000
    units: bytes
  - name: admin-state
    type: enumeration
    enums: [up, down]
    default: up
groupings:
  - name: counters
    nodes:
      - kind: leaf
        name: in-octets
        type: uint64
        config: false
"""

ACME_INTERFACES = """
module: acme-interfaces
namespace: urn:acme:interfaces
prefix: if
description: Interface configuration.
imports:
  - module: acme-types
    prefix: at
nodes:
  - kind: container
    name: interfaces
    nodes:
      - kind: list
        name: interface
        key: name
        nodes:
          - kind: leaf
            name: name
            type: string
          - kind: leaf
            name: mtu
            type: at:mtu
          - kind: leaf
            name: enabled
            type: at:admin-state
          - kind: container
            name: stats
            config: false
            nodes:
              - kind: uses
                grouping: at:counters
"""

ACME_SYSTEM = """
module: acme-system
namespace: urn:acme:system
prefix: sys
imports:
  - module: acme-interfaces
    prefix: if
includes:
  - acme-system-ntp
nodes:
  - kind: container
    name: system
    nodes:
      - kind: leaf
        name: hostname
        type: string
augments:
  - target: /if:interfaces/if:interface
    nodes:
      - kind: leaf
        name: description
        type: string
---
submodule: acme-system-ntp
belongs-to: acme-system
prefix: sys
nodes:
  - kind: container
    name: ntp
    nodes:
      - kind: leaf-list
        name: server
        type: string
"""

ALPHA = """
module: alpha
namespace: urn:alpha
prefix: a
nodes:
  - kind: container
    name: top
    nodes:
      - kind: leaf
        name: b
        type: string
      - kind: leaf-list
        name: a
        type: uint8
        config: false
"""

ALPHA_TREE = (
    "module alpha {\n"
    "  rw: a:top {\n"
    "    RO: uint8 []a:a\n"
    "    rw: string a:b\n"
    "  }\n"
    "}\n"
)


def schema(text: str) -> str:
    return textwrap.dedent(text).lstrip()


@pytest.fixture()
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory; name lookups start here."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def write_schema(workdir: Path) -> Callable[..., Path]:
    def _write(name: str, text: str, directory: Path | None = None) -> Path:
        target = (directory or workdir) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(schema(text), encoding="utf-8")
        return target

    return _write


@pytest.fixture()
def acme(write_schema: Callable[..., Path]) -> dict[str, Path]:
    """The acme-* modules written into the working directory."""
    return {
        "types": write_schema("acme-types.yaml", ACME_TYPES),
        "interfaces": write_schema("acme-interfaces.yaml", ACME_INTERFACES),
        "system": write_schema("acme-system.yaml", ACME_SYSTEM),
    }
