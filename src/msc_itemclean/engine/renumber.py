"""Landfill selection + group renumbering.

Pass order (all passes keep the original record order):

  1. select_landfill : identities of unprotected instances parked at the landfill
  2. tally_groups    : per group, count instances (one ``...Transform`` record each)
  3. baseline        : groups with a built-in instance 0 count one less
  4. remap_tags      : give every instance a new id, counting down from the tally
  5. patch_counters  : store each group's highest id in its counter record

New ids are handed out in descending order, following the order the game
itself writes instances in. Whether the game actually requires that is unverified.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from msc_itemclean.core.landfill import is_in_landfill
from msc_itemclean.core.records import Record, put_u32_le
from msc_itemclean.core.tags import item_identity, rebase_identity, set_numeric_suffix
from msc_itemclean.errors import FormatError
from msc_itemclean.profile import CleanupProfile, ItemGroup

# Counter records: FF 56 08 A8 E2 (0A 00 00 00), the u32 LE highest id.
COUNTER_OFFSET = 5
COUNTER_LEN = 4


@dataclass
class GroupTally:
    """Running state of one group during a single cleanup run."""

    group: ItemGroup
    population: int = 0
    count: int = 0
    highest: int = 0
    id_map: dict[str, str] = field(default_factory=dict)

    def next_id(self) -> int:
        n = self.count
        if self.count > 0:
            self.count -= 1
        return n


@dataclass(frozen=True)
class RenumberReport:
    tallies: tuple[GroupTally, ...]
    renamed: int
    counters_patched: int


def select_landfill(records: Iterable[Record], profile: CleanupProfile) -> list[str]:
    """Identities of the instances to drop (first-seen order, no duplicates)."""
    out: dict[str, None] = {}
    for rec in records:
        if not is_in_landfill(rec, profile.landfill_position):
            continue
        identity = item_identity(rec.tag)
        if identity in profile.protected_ids or profile.has_protected_prefix(rec.tag):
            continue
        out.setdefault(identity, None)
    return list(out)


def drop_identities(records: Iterable[Record], identities: Iterable[str]) -> list[Record]:
    # Identity-scoped: every field record of a landfill instance goes, not just
    # the one that carries the position.
    doomed = set(identities)
    return [r for r in records if item_identity(r.tag) not in doomed]


def tally_groups(records: Sequence[Record], profile: CleanupProfile) -> list[GroupTally]:
    tallies = [GroupTally(group=g) for g in profile.groups]
    for rec in records:
        if not rec.tag.endswith(profile.instance_suffix):
            continue
        for t in tallies:
            if rec.tag.startswith(t.group.prefix):
                t.population += 1

    for t in tallies:
        t.count = t.highest = t.population
        # The counter stores the highest id, and a built-in instance 0 is not counted.
        if t.population >= 1 and t.group.default_zero_item:
            t.count -= 1
            t.highest -= 1
    return tallies


def remap_tags(
    records: Sequence[Record], profile: CleanupProfile, tallies: Sequence[GroupTally]
) -> int:
    """Renumber instance tags in place; returns how many tags changed."""
    renamed = 0
    for rec in records:
        if rec.tag in profile.counter_tags:
            continue
        if profile.is_protected(rec.tag):
            continue

        before = rec.tag
        for t in tallies:
            if not rec.tag.startswith(t.group.prefix):
                continue
            identity = item_identity(rec.tag)
            mapped = t.id_map.get(identity)
            if mapped is not None:
                # Sibling field of an instance we already renumbered.
                rec.tag = rebase_identity(rec.tag, identity, mapped)
            else:
                rec.tag = set_numeric_suffix(rec.tag, t.next_id())
                t.id_map[identity] = item_identity(rec.tag)
        if rec.tag != before:
            renamed += 1
    return renamed


def patch_counters(records: Iterable[Record], tallies: Sequence[GroupTally]) -> int:
    by_counter = {t.group.counter_tag: t for t in tallies}
    patched = 0
    end = COUNTER_OFFSET + COUNTER_LEN
    for rec in records:
        t = by_counter.get(rec.tag)
        if t is None:
            continue
        if len(rec.data) < end:
            raise FormatError(
                f"counter record {rec.tag!r} too short ({len(rec.data)} < {end} bytes)"
            )
        rec.data = rec.data[:COUNTER_OFFSET] + put_u32_le(t.highest) + rec.data[end:]
        patched += 1
    return patched


def renumber(records: Sequence[Record], profile: CleanupProfile) -> RenumberReport:
    """Steps 2..5 over records that already survived landfill selection."""
    tallies = tally_groups(records, profile)
    renamed = remap_tags(records, profile, tallies)
    patched = patch_counters(records, tallies)
    return RenumberReport(tallies=tuple(tallies), renamed=renamed, counters_patched=patched)
