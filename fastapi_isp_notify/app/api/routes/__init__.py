from fastapi import APIRouter

from . import health, notifications

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(notifications.router)
