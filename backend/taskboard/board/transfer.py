"""Project export and import.

An export bundles a project with its tasks and custom field definitions.
Importing always creates a new project; custom field ids are reassigned by
the store, so task values are remapped onto the new ids and values for
fields missing from the bundle are dropped.
"""

from datetime import datetime, timezone
from typing import Any, Union

import structlog

from taskboard.board.ordering import sort_tasks
from taskboard.board.store import TaskStore
from taskboard.exceptions import ValidationError
from taskboard.schemas import (
    CustomFieldCreate,
    Project,
    ProjectCreate,
    ProjectExport,
    TaskCreate,
)

logger = structlog.get_logger()

# wire name -> attribute name
_REQUIRED_KEYS = {"project": "project", "tasks": "tasks", "customFields": "custom_fields"}


async def export_project(store: TaskStore, project_id: str) -> ProjectExport:
    """Snapshot a project, its tasks and its custom fields."""
    project = await store.get_project(project_id)
    tasks = await store.list_tasks(project_id)
    fields = await store.list_custom_fields(project_id)
    return ProjectExport(
        project=project,
        tasks=sort_tasks(tasks),
        custom_fields=fields,
        export_date=datetime.now(timezone.utc),
    )


def _parse_bundle(data: Union[ProjectExport, dict[str, Any]]) -> ProjectExport:
    if isinstance(data, ProjectExport):
        return data
    missing = [alias for alias, name in _REQUIRED_KEYS.items() if alias not in data and name not in data]
    if missing:
        raise ValidationError(f"Invalid import data format: missing {', '.join(missing)}")
    try:
        return ProjectExport.model_validate(data)
    except ValueError as e:
        raise ValidationError(f"Invalid import data format: {e}") from e


async def import_project(store: TaskStore, data: Union[ProjectExport, dict[str, Any]]) -> Project:
    """Recreate an exported project as a new project."""
    bundle = _parse_bundle(data)

    project = await store.create_project(
        ProjectCreate(
            title=bundle.project.title,
            description=bundle.project.description,
            status=bundle.project.status,
        )
    )

    field_ids: dict[str, str] = {}
    for field in bundle.custom_fields:
        created = await store.create_custom_field(
            CustomFieldCreate(
                project_id=project.id,
                name=field.name,
                type=field.type,
                options=field.options,
                is_required=field.is_required,
                is_multi=field.is_multi,
            )
        )
        field_ids[field.id] = created.id

    # Created in render order so the store's append ordering preserves it
    for task in sort_tasks(bundle.tasks):
        values = {
            field_ids[old_id]: value.model_dump(mode="json")
            for old_id, value in task.custom_fields.items()
            if old_id in field_ids
        }
        await store.create_task(
            TaskCreate(
                project_id=project.id,
                title=task.title,
                description=task.description,
                status=task.status,
                priority=task.priority,
                assignee=task.assignee,
                due_date=task.due_date,
                tags=task.tags,
                custom_fields=values,
            )
        )

    logger.info(
        "project_imported",
        project_id=project.id,
        tasks=len(bundle.tasks),
        custom_fields=len(bundle.custom_fields),
    )
    return project
