"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: there is no per-router auth wiring. The authorization gate runs
as an app-wide dependency and consults the public allow-list in
settings, so a new router is protected by default and only becomes
public by adding its path to the list.
"""

from fastapi import APIRouter

from sneakerbox.api.auth import router as auth_router
from sneakerbox.api.auth import session_router
from sneakerbox.api.health import router as health_router
from sneakerbox.api.sneakers import router as sneakers_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(session_router, tags=["auth"])
api_router.include_router(sneakers_router, tags=["sneakers"])
