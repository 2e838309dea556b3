"""Snapshot-vs-table diff.

diff(existing_titles, fresh_records) -> ReconciliationPlan

- to_delete: titles present in the table but absent from the snapshot.
- to_upsert: snapshot records, one per title. When a title repeats, the last
  record in file order wins but keeps the slot of the first occurrence.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple, FrozenSet
from schemas.catalog import CatalogRecord


@dataclass(frozen=True)
class ReconciliationPlan:
    to_delete: FrozenSet[str] = frozenset()
    to_upsert: Tuple[CatalogRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_upsert

    @property
    def upsert_titles(self) -> list[str]:
        return [r.title for r in self.to_upsert]


def dedupe_by_title(records: Sequence[CatalogRecord]) -> Tuple[CatalogRecord, ...]:
    latest: dict[str, CatalogRecord] = {}
    for record in records:
        # dict keeps first-insertion order; reassignment keeps the slot
        latest[record.title] = record
    return tuple(latest.values())


def diff(existing_titles: Iterable[str], fresh_records: Sequence[CatalogRecord]) -> ReconciliationPlan:
    to_upsert = dedupe_by_title(fresh_records)
    fresh_titles = {r.title for r in to_upsert}
    to_delete = frozenset(t for t in existing_titles if t not in fresh_titles)
    return ReconciliationPlan(to_delete=to_delete, to_upsert=to_upsert)
