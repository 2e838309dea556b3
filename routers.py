from fastapi import APIRouter
from endpoints.catalog import comics_router, upcoming_router
from endpoints.realtime_ws import router as realtime_ws_router
from endpoints.upload import router as upload_router

api_router = APIRouter()
api_router.include_router(comics_router, prefix="/comics", tags=["comics"])
api_router.include_router(upcoming_router, prefix="/upcoming", tags=["upcoming"])
api_router.include_router(upload_router, tags=["upload"])
api_router.include_router(realtime_ws_router, tags=["realtime"])
