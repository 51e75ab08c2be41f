"""Custom field API endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.session import get_db_session
from taskboard.schemas import CustomField, CustomFieldCreate, CustomFieldUpdate
from taskboard.services.custom_field import CustomFieldService

router = APIRouter()
logger = structlog.get_logger()


@router.get("/", response_model=list[CustomField])
async def list_custom_fields(
    project_id: str = Query(..., alias="projectId"),
    db: AsyncSession = Depends(get_db_session),
) -> list[CustomField]:
    """List a project's custom field definitions."""
    return await CustomFieldService(db).get_project_fields(project_id)


@router.post("/", response_model=CustomField, status_code=status.HTTP_201_CREATED)
async def create_custom_field(
    field_data: CustomFieldCreate,
    db: AsyncSession = Depends(get_db_session),
) -> CustomField:
    """Create a custom field definition."""
    return await CustomFieldService(db).create_field(field_data)


@router.patch("/{field_id}", response_model=CustomField)
async def update_custom_field(
    field_id: str,
    field_data: CustomFieldUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> CustomField:
    """Update a custom field definition."""
    return await CustomFieldService(db).update_field(field_id, field_data)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_custom_field(
    field_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Delete a custom field and its values."""
    await CustomFieldService(db).delete_field(field_id)
