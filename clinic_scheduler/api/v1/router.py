"""API v1 router configuration."""

from fastapi import APIRouter

from clinic_scheduler.api.v1.endpoints import blocks, bookings, health, provider, providers

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(providers.router, tags=["Providers"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(provider.router, prefix="/provider", tags=["Provider"])
api_router.include_router(blocks.router, prefix="/provider", tags=["Blocks"])
