"""Catalog descriptors.

Both catalogs run through the same reader, reconciler, store and sync code;
a Catalog names the table, record schema and snapshot file that differ.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Type
from config import settings
from models.comic import Comic
from models.upcoming_book import UpcomingBook
from schemas.catalog import CatalogRecord, ComicRecord, ComicOut, UpcomingBookRecord, UpcomingBookOut


@dataclass(frozen=True)
class Catalog:
    key: str  # URL prefix and ChangeEvent.catalog
    label: str
    model: type
    record_cls: Type[CatalogRecord]
    out_cls: Type[CatalogRecord]
    snapshot_path: Path

    @property
    def table(self) -> str:
        return self.model.__tablename__


def build_catalogs(comics_path: str | Path | None = None, upcoming_path: str | Path | None = None) -> Dict[str, Catalog]:
    comics = Catalog(
        key="comics",
        label="Comic",
        model=Comic,
        record_cls=ComicRecord,
        out_cls=ComicOut,
        snapshot_path=Path(comics_path or settings.COMICS_SNAPSHOT_PATH),
    )
    upcoming = Catalog(
        key="upcoming",
        label="Upcoming comic",
        model=UpcomingBook,
        record_cls=UpcomingBookRecord,
        out_cls=UpcomingBookOut,
        snapshot_path=Path(upcoming_path or settings.UPCOMING_SNAPSHOT_PATH),
    )
    return {comics.key: comics, upcoming.key: upcoming}
