"""
API v1 router aggregation
Combines all v1 route handlers into a single router
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
from fastapi import APIRouter

from smartwardrobe.api.v1.routes import collection, garment, health, stats, tag
from smartwardrobe.core.config import settings


# All v1 routes are prefixed with /api/v1
api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(garment.router)
api_router.include_router(tag.router)
api_router.include_router(collection.router)
api_router.include_router(stats.router)
api_router.include_router(health.router)
