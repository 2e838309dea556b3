"""Canonical catalog records.

The same models normalize snapshot file entries and API request bodies, so a
record always leaves validation in one shape:

- missing/null description, genre, author -> ""
- missing/invalid year or release_date -> None
- images/media_urls that is not a list -> []
"""
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional


class CatalogRecord(BaseModel):
    title: str
    description: str = ""
    genre: str = ""
    media_urls: List[str] = Field(default_factory=list, validation_alias=AliasChoices("media_urls", "images"))

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("title", mode="before")
    def validate_title(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("title must be a non-empty string")
        return v.strip()

    @field_validator("description", "genre", mode="before")
    def blank_if_missing(cls, v):
        return "" if v is None else str(v)

    @field_validator("media_urls", mode="before")
    def coerce_media_urls(cls, v):
        if not isinstance(v, (list, tuple)):
            return []
        return [str(u) for u in v if u is not None]

    def to_snapshot(self) -> dict:
        """Snapshot file form (media URLs live under ``images``)."""
        data = self.model_dump(mode="json")
        data["images"] = data.pop("media_urls")
        return data

    def to_row(self) -> dict:
        """Column values for the remote table."""
        return self.model_dump()


class ComicRecord(CatalogRecord):
    year: Optional[int] = None

    @field_validator("year", mode="before")
    def validate_year(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float):
            return int(v) if v.is_integer() else None
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return None


class UpcomingBookRecord(CatalogRecord):
    author: str = ""
    release_date: Optional[date] = None
    status: str = "upcoming"
    pre_order: bool = False

    @field_validator("author", mode="before")
    def blank_author(cls, v):
        return "" if v is None else str(v)

    @field_validator("release_date", mode="before")
    def validate_release_date(cls, v):
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        if isinstance(v, str):
            try:
                return date.fromisoformat(v.strip()[:10])
            except ValueError:
                return None
        return None

    @field_validator("status", mode="before")
    def default_status(cls, v):
        return v if isinstance(v, str) and v.strip() else "upcoming"

    @field_validator("pre_order", mode="before")
    def validate_pre_order(cls, v):
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in {"true", "1", "yes"}
        return bool(v)


class ComicOut(ComicRecord):
    id: int
    created_at: Optional[datetime] = None


class UpcomingBookOut(UpcomingBookRecord):
    id: int
    created_at: Optional[datetime] = None


class ChangeKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    FULL_SYNC = "full_sync"


class ChangeEvent(BaseModel):
    kind: ChangeKind
    catalog: str
    payload: Any = None

    def to_message(self) -> dict:
        return self.model_dump(mode="json")
