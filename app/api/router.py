from fastapi import APIRouter
from app.api.routes import health, recalls, sync

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(recalls.router, prefix="/recalls", tags=["Recalls"])
api_router.include_router(sync.router, prefix="/sync", tags=["Sync"])
