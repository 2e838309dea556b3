from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from routers import api_router
from config import settings
from database import engine, Base
from models.comic import Comic  # ensure model registration
from models.upcoming_book import UpcomingBook  # ensure model registration
from services.sync import get_catalog_syncs
from services.watcher import SnapshotWatcher
import os
import logging
from sqlalchemy import inspect

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Avoid calling create_all() unconditionally in production; rely on Alembic there.
# We only auto-create in explicit test/dev scenarios (SQLite or env flag).
if os.environ.get("TESTING") or engine.url.get_backend_name() == "sqlite" or os.environ.get("DEV_AUTO_CREATE") == "1":
    Base.metadata.create_all(bind=engine)
else:
    try:
        insp = inspect(engine)
        missing = {t for t in ("comics", "upcoming_books") if t not in insp.get_table_names()}
        if missing:
            logger.warning(
                "Database is missing tables %s. Run Alembic migrations: `alembic upgrade head`.",
                ", ".join(sorted(missing))
            )
    except Exception as e:
        logger.warning("Schema inspection failed: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    syncs = get_catalog_syncs()
    if settings.SYNC_ON_STARTUP:
        for sync in syncs.values():
            await sync.run_cycle("startup")
    watcher = None
    if settings.WATCH_SNAPSHOTS:
        watcher = SnapshotWatcher(syncs.values(), debounce_ms=settings.SNAPSHOT_DEBOUNCE_MS)
        await watcher.start()
    app.state.snapshot_watcher = watcher
    try:
        yield
    finally:
        if watcher is not None:
            await watcher.stop()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": "Welcome to the Comic Catalog API!"}

@app.get("/health")
async def health():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", 8080)), reload=settings.DEBUG)
