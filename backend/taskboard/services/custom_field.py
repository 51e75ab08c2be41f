"""Custom field service for managing project-level field definitions and task values."""

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError, ValidationError
from taskboard.field_values import CustomFieldValue, coerce_field_value, coerce_field_values
from taskboard.models.project import CustomField, Task
from taskboard.schemas import CustomField as CustomFieldSchema
from taskboard.schemas import CustomFieldCreate, CustomFieldUpdate
from taskboard.services.project import ProjectService

logger = structlog.get_logger()


class CustomFieldService:
    """Service for managing custom fields and their values."""

    VALID_FIELD_TYPES = {
        "text",
        "number",
        "date",
        "select",
        "multiselect",
        "checkbox",
        "url",
    }

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Field Definition CRUD
    # =========================================================================

    async def create_field(self, data: CustomFieldCreate) -> CustomFieldSchema:
        """Create a new custom field definition for a project."""
        if data.type not in self.VALID_FIELD_TYPES:
            raise ValidationError(f"Invalid field type: {data.type}")

        await ProjectService(self.db).get_row(data.project_id)
        await self._ensure_unique_name(data.project_id, data.name)

        # Multiselect is stored as a select flagged is_multi
        is_multi = data.is_multi or data.type == "multiselect"
        field_type = "select" if data.type == "multiselect" else data.type
        if field_type == "select" and not data.options:
            raise ValidationError("Options are required for select fields")

        field = CustomField(
            project_id=data.project_id,
            name=data.name.strip(),
            type=field_type,
            options=data.options if field_type == "select" else None,
            is_required=data.is_required,
            is_multi=is_multi if field_type == "select" else False,
        )
        self.db.add(field)
        await self.db.commit()
        await self.db.refresh(field)

        logger.info(
            "custom_field_created",
            field_id=field.id,
            project_id=data.project_id,
            field_type=data.type,
        )

        return CustomFieldSchema.model_validate(field)

    async def _ensure_unique_name(
        self, project_id: str, name: str, exclude_id: str | None = None
    ) -> None:
        query = select(CustomField.id).where(
            CustomField.project_id == project_id,
            CustomField.name == name.strip(),
        )
        if exclude_id:
            query = query.where(CustomField.id != exclude_id)
        result = await self.db.execute(query)
        if result.first() is not None:
            raise ValidationError(f"A field named '{name}' already exists in this project")

    async def get_row(self, field_id: str) -> CustomField:
        result = await self.db.execute(select(CustomField).where(CustomField.id == field_id))
        field = result.scalar_one_or_none()
        if field is None:
            raise NotFoundError("CustomField", field_id)
        return field

    async def get_field(self, field_id: str) -> CustomFieldSchema:
        """Get a custom field by ID."""
        return CustomFieldSchema.model_validate(await self.get_row(field_id))

    async def get_project_fields(self, project_id: str) -> list[CustomFieldSchema]:
        """Get all custom fields for a project."""
        await ProjectService(self.db).get_row(project_id)
        result = await self.db.execute(
            select(CustomField)
            .where(CustomField.project_id == project_id)
            .order_by(CustomField.created_at, CustomField.name)
        )
        return [CustomFieldSchema.model_validate(f) for f in result.scalars().all()]

    async def update_field(self, field_id: str, data: CustomFieldUpdate) -> CustomFieldSchema:
        """Update a custom field definition."""
        field = await self.get_row(field_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("name") is not None:
            await self._ensure_unique_name(field.project_id, changes["name"], exclude_id=field_id)
            field.name = changes["name"].strip()
        if changes.get("options") is not None and field.type == "select":
            if not changes["options"]:
                raise ValidationError("Options are required for select fields")
            field.options = changes["options"]
        if changes.get("is_required") is not None:
            field.is_required = changes["is_required"]
        if changes.get("is_multi") is not None and field.type == "select":
            field.is_multi = changes["is_multi"]

        await self.db.commit()
        await self.db.refresh(field)

        logger.info("custom_field_updated", field_id=field_id, fields=sorted(changes))
        return CustomFieldSchema.model_validate(field)

    async def delete_field(self, field_id: str) -> None:
        """Delete a custom field and strip its values from the project's tasks."""
        field = await self.get_row(field_id)

        result = await self.db.execute(select(Task).where(Task.project_id == field.project_id))
        cleared = 0
        for task in result.scalars().all():
            if task.custom_fields and field_id in task.custom_fields:
                # Reassign so the JSON column is flagged dirty
                task.custom_fields = {
                    k: v for k, v in task.custom_fields.items() if k != field_id
                }
                cleared += 1

        await self.db.delete(field)
        await self.db.commit()

        logger.info("custom_field_deleted", field_id=field_id, values_cleared=cleared)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_value(self, field: CustomFieldSchema, value: Any) -> CustomFieldValue:
        """Validate a single value against a field definition."""
        return coerce_field_value(field, value)

    async def coerce_task_values(
        self,
        project_id: str,
        raw_values: dict[str, Any],
    ) -> dict[str, Any]:
        """Validate a task's values and return their JSON storage form."""
        if not raw_values:
            return {}
        fields = await self.get_project_fields(project_id)
        typed = coerce_field_values(fields, raw_values)
        return {field_id: value.model_dump(mode="json") for field_id, value in typed.items()}
