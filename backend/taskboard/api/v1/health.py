"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.db.session import get_db_session
from taskboard.models.project import CustomField, Project, Task

router = APIRouter()

# Tables the store cannot serve without
REQUIRED_TABLES = (Project, Task, CustomField)


def _settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """Liveness: the process is up."""
    settings = _settings(request)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, str | dict[str, str]]:
    """Readiness: every store table answers a query."""
    checks: dict[str, str] = {}

    for model in REQUIRED_TABLES:
        name = model.__tablename__
        try:
            await db.execute(select(func.count()).select_from(model))
            checks[name] = "healthy"
        except SQLAlchemyError as e:
            checks[name] = f"unhealthy: {e.__class__.__name__}"
            await db.rollback()

    overall_status = "healthy" if all(v == "healthy" for v in checks.values()) else "unhealthy"

    return {
        "status": overall_status,
        "version": _settings(request).app_version,
        "checks": checks,
    }
