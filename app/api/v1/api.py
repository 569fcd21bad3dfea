from fastapi import APIRouter

from app.api.v1.endpoints import releases

api_router = APIRouter()
api_router.include_router(releases.router, prefix="/releases", tags=["releases"])
