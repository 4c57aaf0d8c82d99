"""API route registration.

Aggregates the API routers into a single router
for inclusion in the main application.
"""

from fastapi import APIRouter

from recordstream.api.routes.records import router as records_router

# Main API router (mounted under /api)
api_router = APIRouter()

api_router.include_router(records_router)
