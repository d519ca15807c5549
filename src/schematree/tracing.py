"""Scoped execution tracing for a single run."""

from __future__ import annotations

import cProfile
import marshal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


@contextmanager
def trace_session(path: Path | None) -> Iterator[cProfile.Profile | None]:
    """Profile the enclosed block and write the stats to ``path``.

    The file is opened before profiling starts, so an unwritable path raises
    ``OSError`` up front. Stats are written and the file closed on every exit,
    including exceptions. With ``path=None`` this is a no-op.
    """
    if path is None:
        yield None
        return
    with path.open("wb") as fp:
        profiler = cProfile.Profile()
        profiler.enable()
        try:
            yield profiler
        finally:
            profiler.disable()
            profiler.create_stats()
            # Same layout as Profile.dump_stats, readable by pstats.Stats.
            marshal.dump(profiler.stats, fp)
