"""API router package."""

from fastapi import APIRouter

from taskboard.api.v1 import custom_fields, health, projects, tasks

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(custom_fields.router, prefix="/custom-fields", tags=["Custom Fields"])
