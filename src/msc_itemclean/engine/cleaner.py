"""Cleanup orchestrator: decode -> drop landfill instances -> renumber -> encode.

Pure transform: same input + same profile => same output. Nothing here touches
the filesystem; reading/writing/backups are the caller's business.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from msc_itemclean.core.records import Record, decode_records, encode_records
from msc_itemclean.engine.renumber import RenumberReport, drop_identities, renumber, select_landfill
from msc_itemclean.profile import DEFAULT_PROFILE, CleanupProfile


@dataclass(frozen=True)
class CleanReport:
    profile: str
    records_in: int
    records_out: int
    removed_identities: tuple[str, ...]
    renumber: RenumberReport

    @property
    def records_removed(self) -> int:
        return self.records_in - self.records_out

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready summary. Only groups that have instances are listed."""
        groups = [
            {
                "prefix": t.group.prefix,
                "counter_tag": t.group.counter_tag,
                "population": t.population,
                "highest": t.highest,
            }
            for t in self.renumber.tallies
            if t.population
        ]
        return {
            "profile": self.profile,
            "records_in": self.records_in,
            "records_out": self.records_out,
            "records_removed": self.records_removed,
            "removed_items": list(self.removed_identities),
            "renamed": self.renumber.renamed,
            "counters_patched": self.renumber.counters_patched,
            "groups": groups,
        }


@dataclass(frozen=True)
class CleanResult:
    records: list[Record]
    report: CleanReport


def clean_with_report(
    records: Iterable[Record], profile: CleanupProfile = DEFAULT_PROFILE
) -> CleanResult:
    recs = list(records)
    doomed = select_landfill(recs, profile)
    kept = drop_identities(recs, doomed)
    rn = renumber(kept, profile)
    report = CleanReport(
        profile=profile.name,
        records_in=len(recs),
        records_out=len(kept),
        removed_identities=tuple(doomed),
        renumber=rn,
    )
    return CleanResult(records=kept, report=report)


def clean(records: Iterable[Record], profile: CleanupProfile = DEFAULT_PROFILE) -> list[Record]:
    return clean_with_report(records, profile).records


def clean_bytes(buf: bytes, profile: CleanupProfile = DEFAULT_PROFILE) -> tuple[bytes, CleanReport]:
    """Whole-buffer cleanup. Raises FormatError before producing any output."""
    res = clean_with_report(decode_records(buf), profile)
    return encode_records(res.records), res.report
