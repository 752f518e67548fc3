"""Human-readable listing of an items file (diagnostics only).

One line per record; counter records also show the stored highest id:

    BeerCaseID (10)
    beercase10Transform
    ...
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from msc_itemclean.core.records import Record, get_u32_le
from msc_itemclean.engine.renumber import COUNTER_OFFSET
from msc_itemclean.errors import StorageError


def format_entries(records: Iterable[Record], counter_tags: Iterable[str]) -> list[str]:
    counters = set(counter_tags)
    out: list[str] = []
    for r in records:
        if r.tag in counters and len(r.data) >= COUNTER_OFFSET + 4:
            out.append(f"{r.tag} ({get_u32_le(r.data, COUNTER_OFFSET)})")
        else:
            out.append(r.tag)
    return out


def write_listing(records: Iterable[Record], path: Path, counter_tags: Iterable[str]) -> None:
    text = "\n".join(format_entries(records, counter_tags))
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Failed saving {path}: {e}") from e
