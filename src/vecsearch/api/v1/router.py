"""Main API v1 router that combines all endpoint routers."""

from fastapi import APIRouter

from vecsearch.api.v1.endpoints import documents, health, indexes, search

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router)
api_router.include_router(indexes.router)
api_router.include_router(documents.router)
api_router.include_router(search.router)
