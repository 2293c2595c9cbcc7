from fastapi import APIRouter

from inventory_service.api.endpoints import health
from inventory_service.api.endpoints import inventory
from inventory_service.api.endpoints import register
from inventory_service.api.endpoints import search

api_router = APIRouter()
api_router.include_router(register.router, tags=["inventory"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(search.router, tags=["search"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
