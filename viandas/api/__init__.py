"""API router aggregator."""
from fastapi import APIRouter

from .routes import files, orders, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(users.router)
api_router.include_router(orders.router)
api_router.include_router(files.router)

__all__ = ["api_router"]
