"""Projects API endpoints."""

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.session import get_db_session
from taskboard.schemas import Project, ProjectCreate, ProjectUpdate
from taskboard.services.project import ProjectService

router = APIRouter()
logger = structlog.get_logger()


@router.get("/", response_model=list[Project])
async def list_projects(
    db: AsyncSession = Depends(get_db_session),
) -> list[Project]:
    """List all projects with their task counts."""
    return await ProjectService(db).list_projects()


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Create a new project."""
    return await ProjectService(db).create_project(project_data)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Get a specific project."""
    return await ProjectService(db).get_project(project_id)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Project:
    """Update a project."""
    return await ProjectService(db).update_project(project_id, project_data)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Delete a project along with its tasks and custom fields."""
    await ProjectService(db).delete_project(project_id)
