"""Router aggregation."""

from __future__ import annotations

from fastapi import APIRouter

from tutorhub.routers import health as health_router_module
from tutorhub.routers import reminders as reminders_router_module
from tutorhub.routers import students as students_router_module
from tutorhub.routers import webhooks as webhooks_router_module
from tutorhub.routers import zalo as zalo_router_module

# Create aggregated router
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router_module.router)
api_router.include_router(zalo_router_module.router)
api_router.include_router(reminders_router_module.router)
api_router.include_router(students_router_module.router)
api_router.include_router(webhooks_router_module.router)

__all__ = ["api_router"]
