import pytest
from datetime import date
from schemas.catalog import ComicRecord, UpcomingBookRecord
from services.errors import SnapshotNotFound, InvalidSnapshotFormat
from services.snapshot import read_snapshot, write_snapshot
from conftest import write_json


def test_missing_file_is_not_found(tmp_path):
    with pytest.raises(SnapshotNotFound):
        read_snapshot(tmp_path / "nope.json", ComicRecord)


@pytest.mark.parametrize("content", [
    "{not json",
    '{"title": "A"}',
    '["A", "B"]',
    '[{"description": "no title"}]',
])
def test_malformed_content_is_invalid_format(tmp_path, content):
    path = tmp_path / "comic.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(InvalidSnapshotFormat):
        read_snapshot(path, ComicRecord)


def test_read_normalizes_every_entry(tmp_path):
    path = tmp_path / "comic.json"
    write_json(path, [
        {"title": "A", "year": None},
        {"title": "B", "genre": "noir", "year": "1987", "images": "cover.png"},
    ])
    records = read_snapshot(path, ComicRecord)
    assert [r.title for r in records] == ["A", "B"]
    assert records[0].description == ""
    assert records[1].year == 1987
    assert records[1].media_urls == []


def test_empty_array_reads_as_no_records(tmp_path):
    path = tmp_path / "comic.json"
    write_json(path, [])
    assert read_snapshot(path, ComicRecord) == []


def test_write_then_read_round_trips(tmp_path):
    path = tmp_path / "nested" / "upcoming.json"
    records = [
        UpcomingBookRecord(title="X", author="Ann", release_date=date(2026, 5, 1), pre_order=True, media_urls=["u1"]),
        UpcomingBookRecord(title="Y", status="delayed"),
    ]
    assert write_snapshot(path, records) == 2
    assert read_snapshot(path, UpcomingBookRecord) == records
    # no temp files left behind
    assert [p.name for p in path.parent.iterdir()] == ["upcoming.json"]


def test_comic_round_trip(tmp_path):
    path = tmp_path / "comic.json"
    records = [ComicRecord(title="A", year=2001, media_urls=["a", "b"]), ComicRecord(title="B")]
    write_snapshot(path, records)
    assert read_snapshot(path, ComicRecord) == records
