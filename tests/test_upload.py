import asyncio
import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import pytest
from main import app
from services.errors import MediaUploadError
from services.media import MediaUploader, get_media_uploader

API = "/api/v1"


def test_upload_sends_file_through_sdk_and_returns_secure_url(monkeypatch):
    seen = {}

    def fake_upload(file, **options):
        seen["name"] = file.name
        seen["body"] = file.read()
        seen["options"] = options
        return {"secure_url": "https://res.cloudinary.com/demo/raw/upload/v1/comic.pdf"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    uploader = MediaUploader("demo", "key", "secret", timeout=5.0)
    url = asyncio.run(uploader.upload("comic.pdf", b"%PDF", "application/pdf"))
    assert url.endswith("comic.pdf")
    assert seen["name"] == "comic.pdf"
    assert seen["body"] == b"%PDF"
    assert seen["options"]["resource_type"] == "raw"
    assert seen["options"]["timeout"] == 5.0
    config = cloudinary.config()
    assert (config.cloud_name, config.api_key, config.api_secret) == ("demo", "key", "secret")


def test_rejected_upload_raises(monkeypatch):
    def fake_upload(file, **options):
        raise cloudinary.exceptions.Error("Invalid Signature")

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    with pytest.raises(MediaUploadError, match="Invalid Signature"):
        asyncio.run(MediaUploader("demo", "key", "secret").upload("a.png", b"x"))


def test_response_without_secure_url_raises(monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "upload", lambda file, **options: {"public_id": "a"})
    with pytest.raises(MediaUploadError, match="secure_url"):
        asyncio.run(MediaUploader("demo", "key", "secret").upload("a.png", b"x"))


def test_unconfigured_uploader_raises(monkeypatch):
    def fake_upload(file, **options):
        raise AssertionError("must not reach the media host")

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    with pytest.raises(MediaUploadError):
        asyncio.run(MediaUploader(None, None, None).upload("a.png", b"x"))


class FakeUploader:
    def __init__(self, url=None, error=None):
        self.url = url
        self.error = error
        self.received = []

    async def upload(self, filename, content, content_type=None):
        self.received.append((filename, content))
        if self.error:
            raise self.error
        return self.url


def test_upload_endpoint_creates_comic_with_media_url(client, hub):
    fake = FakeUploader(url="https://cdn.example/c1.cbz")
    app.dependency_overrides[get_media_uploader] = lambda: fake
    try:
        r = client.post(
            f"{API}/upload",
            files={"file": ("c1.cbz", b"data", "application/zip")},
            data={"title": "Uploaded", "description": "desc", "year": "not-a-year"},
        )
    finally:
        app.dependency_overrides.pop(get_media_uploader, None)
    assert r.status_code == 200, r.text
    comic = r.json()["comic"]
    assert comic["media_urls"] == ["https://cdn.example/c1.cbz"]
    assert comic["year"] is None
    assert fake.received == [("c1.cbz", b"data")]
    assert hub.kinds == ["add"]


def test_upload_endpoint_media_failure_is_502(client, hub):
    fake = FakeUploader(error=MediaUploadError("host down"))
    app.dependency_overrides[get_media_uploader] = lambda: fake
    try:
        r = client.post(f"{API}/upload", files={"file": ("c.cbz", b"d")}, data={"title": "T"})
    finally:
        app.dependency_overrides.pop(get_media_uploader, None)
    assert r.status_code == 502
    assert hub.events == []
    assert client.get(f"{API}/comics/").json() == []
