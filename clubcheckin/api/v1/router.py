"""Main API router for v1."""
from fastapi import APIRouter

from clubcheckin.api.v1.endpoints import checkin, realtime

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(checkin.router, prefix="/checkin", tags=["Check-In"])
api_router.include_router(realtime.router, tags=["Realtime"])
