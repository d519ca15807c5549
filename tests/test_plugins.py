from __future__ import annotations

from collections.abc import Sequence
from typing import TextIO

import pytest

from schematree.entry import Entry
from schematree.plugins import ENTRY_POINT_GROUP, Formatter, FormatRegistry


def _writer(text: str):
    def render(out: TextIO, entries: Sequence[Entry]) -> None:
        out.write(text)

    return render


class FakeEntryPoint:
    def __init__(self, name: str, value: object) -> None:
        self.name = name
        self.value = value

    def load(self) -> object:
        return self.value


def test_last_registration_wins() -> None:
    registry = FormatRegistry()
    first = Formatter("dump", _writer("first"), "first dump")
    second = Formatter("dump", _writer("second"), "second dump")
    registry.register(first).register(second)
    assert len(registry) == 1
    assert registry.lookup("dump") is second
    assert "dump" in registry
    assert registry.lookup("missing") is None


def test_names_are_sorted() -> None:
    registry = FormatRegistry()
    for name in ("zeta", "alpha", "mid"):
        registry.register(Formatter(name, _writer(name)))
    assert registry.names() == ["alpha", "mid", "zeta"]
    assert [formatter.name for formatter in registry] == ["alpha", "mid", "zeta"]


def test_entry_point_formats_are_registered(monkeypatch: pytest.MonkeyPatch) -> None:
    extra = Formatter("yang", _writer("yang"), "plugin format")
    seen: list[str] = []

    def fake_entry_points(group: str):
        seen.append(group)
        return [FakeEntryPoint("yang", extra)]

    monkeypatch.setattr("schematree.plugins.entry_points", fake_entry_points)
    registry = FormatRegistry().load_entry_points()
    assert seen == [ENTRY_POINT_GROUP]
    assert registry.lookup("yang") is extra


def test_entry_point_must_provide_a_formatter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "schematree.plugins.entry_points",
        lambda group: [FakeEntryPoint("broken", object())],
    )
    with pytest.raises(TypeError, match="broken"):
        FormatRegistry().load_entry_points()
