"""
API v1 router.
Includes all endpoint routers for version 1 of the API.
"""

from fastapi import APIRouter

from novel_refiner.api.v1.endpoints import refine

# Create main API router
api_router = APIRouter()

# Include refinement routes
api_router.include_router(refine.router)
