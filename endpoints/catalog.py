from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Dict, List, Type
from database import get_db
from endpoints.logs import log_error, log_request
from schemas.catalog import CatalogRecord, ComicRecord, ComicOut, UpcomingBookRecord, UpcomingBookOut
from services.catalog_store import CatalogStore
from services.errors import (
    RemoteError, RecordNotFound, ConstraintViolation, RemoteUnreachable,
    SnapshotNotFound, SnapshotError,
)
from services.snapshot import read_snapshot
from services.sync import CatalogSync, get_catalog_syncs


def remote_http_error(e: RemoteError) -> HTTPException:
    if isinstance(e, RecordNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConstraintViolation):
        return HTTPException(status_code=409, detail=f"Constraint violation: {e}")
    if isinstance(e, RemoteUnreachable):
        return HTTPException(status_code=503, detail="Catalog store unavailable")
    return HTTPException(status_code=500, detail=str(e))


def make_catalog_router(catalog_key: str, record_cls: Type[CatalogRecord], out_cls: Type[CatalogRecord]) -> APIRouter:
    """Build the CRUD + sync routes for one catalog.

    GET /              list all rows
    GET /snapshot      normalized snapshot file contents
    POST /sync         run one reconciliation cycle now
    GET /{id}          one row
    POST /add          create
    PUT /update/{id}   replace fields
    DELETE /delete/{id}
    """
    router = APIRouter()

    def get_sync(syncs: Dict[str, CatalogSync] = Depends(get_catalog_syncs)) -> CatalogSync:
        return syncs[catalog_key]

    @router.get("/", response_model=List[out_cls])
    def list_items(request: Request, sync: CatalogSync = Depends(get_sync), db: Session = Depends(get_db)):
        correlation_id = log_request(request, f"list_{catalog_key}")
        try:
            return CatalogStore(db, sync.catalog).list_all()
        except RemoteError as e:
            log_error(f"list_{catalog_key}_failed", e, correlation_id)
            raise remote_http_error(e)

    @router.get("/snapshot", response_model=List[record_cls])
    async def read_snapshot_items(request: Request, sync: CatalogSync = Depends(get_sync)):
        correlation_id = log_request(request, f"read_{catalog_key}_snapshot")
        try:
            return await run_in_threadpool(read_snapshot, sync.catalog.snapshot_path, sync.catalog.record_cls)
        except SnapshotNotFound as e:
            log_error(f"{catalog_key}_snapshot_missing", e, correlation_id)
            raise HTTPException(status_code=404, detail="Snapshot file not found")
        except SnapshotError as e:
            log_error(f"{catalog_key}_snapshot_invalid", e, correlation_id)
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sync")
    async def sync_items(request: Request, sync: CatalogSync = Depends(get_sync)):
        correlation_id = log_request(request, f"sync_{catalog_key}")
        result = await sync.run_cycle("manual")
        if result is None or not result.ok:
            errors = result.errors if result else [sync.last_error]
            log_error(f"sync_{catalog_key}_failed", errors[0], correlation_id,
                      {"errors": [str(e) for e in errors]})
            raise HTTPException(status_code=500, detail=f"Failed to sync {catalog_key}: {errors[0]}")
        return {"message": "Database updated successfully!", "deleted": result.deleted, "upserted": result.upserted}

    @router.get("/{record_id}", response_model=out_cls)
    def get_item(record_id: int, request: Request, sync: CatalogSync = Depends(get_sync), db: Session = Depends(get_db)):
        correlation_id = log_request(request, f"get_{catalog_key}", {"id": record_id})
        try:
            return CatalogStore(db, sync.catalog).get(record_id)
        except RemoteError as e:
            log_error(f"get_{catalog_key}_failed", e, correlation_id, {"id": record_id})
            raise remote_http_error(e)

    @router.post("/add")
    async def add_item(record: record_cls, request: Request, sync: CatalogSync = Depends(get_sync)):
        correlation_id = log_request(request, f"add_{catalog_key}", {"title": record.title})
        try:
            created = await sync.create(record)
        except RemoteError as e:
            log_error(f"add_{catalog_key}_failed", e, correlation_id, {"title": record.title})
            raise remote_http_error(e)
        return {"message": f"{sync.catalog.label} added!", "comic": created.model_dump(mode="json")}

    @router.put("/update/{record_id}")
    async def update_item(record_id: int, record: record_cls, request: Request, sync: CatalogSync = Depends(get_sync)):
        correlation_id = log_request(request, f"update_{catalog_key}", {"id": record_id, "title": record.title})
        try:
            updated = await sync.update(record_id, record)
        except RemoteError as e:
            log_error(f"update_{catalog_key}_failed", e, correlation_id, {"id": record_id})
            raise remote_http_error(e)
        return {"message": f"{sync.catalog.label} updated!", "comic": updated.model_dump(mode="json")}

    @router.delete("/delete/{record_id}")
    async def delete_item(record_id: int, request: Request, sync: CatalogSync = Depends(get_sync)):
        correlation_id = log_request(request, f"delete_{catalog_key}", {"id": record_id})
        try:
            removed = await sync.delete(record_id)
        except RemoteError as e:
            log_error(f"delete_{catalog_key}_failed", e, correlation_id, {"id": record_id})
            raise remote_http_error(e)
        return {"message": f"{sync.catalog.label} deleted!", "comic": removed.model_dump(mode="json")}

    return router


comics_router = make_catalog_router("comics", ComicRecord, ComicOut)
upcoming_router = make_catalog_router("upcoming", UpcomingBookRecord, UpcomingBookOut)
