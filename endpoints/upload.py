from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError
from typing import Dict, Optional
from endpoints.catalog import remote_http_error
from endpoints.logs import log_error, log_request, log_action
from schemas.catalog import ComicRecord
from services.errors import MediaUploadError, RemoteError
from services.media import MediaUploader, get_media_uploader
from services.sync import CatalogSync, get_catalog_syncs

router = APIRouter()

@router.post("/upload")
async def upload_comic(
    request: Request,
    file: UploadFile = File(...),
    title: str = Form(...),
    description: str = Form(""),
    genre: str = Form(""),
    year: Optional[str] = Form(None),
    uploader: MediaUploader = Depends(get_media_uploader),
    syncs: Dict[str, CatalogSync] = Depends(get_catalog_syncs),
):
    """
    Upload a comic file to the media host and create the comic with the returned URL.
    """
    correlation_id = log_request(request, "upload_comic", {"title": title, "filename": file.filename})
    try:
        record = ComicRecord(title=title, description=description, genre=genre, year=year)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors()[0]["msg"])

    content = await file.read()
    try:
        url = await uploader.upload(file.filename or "upload", content, file.content_type)
    except MediaUploadError as e:
        log_error("media_upload_failed", e, correlation_id, {"title": title})
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        await file.close()
    log_action("media_uploaded", correlation_id, {"title": title, "url": url})

    record = record.model_copy(update={"media_urls": [url]})
    try:
        created = await syncs["comics"].create(record)
    except RemoteError as e:
        log_error("upload_comic_store_failed", e, correlation_id, {"title": title, "url": url})
        raise remote_http_error(e)
    return {"message": "Comic uploaded successfully!", "comic": created.model_dump(mode="json")}
