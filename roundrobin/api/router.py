"""API router aggregation."""

from fastapi import APIRouter

from roundrobin.api.bookings import router as bookings_router
from roundrobin.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(bookings_router)
