"""Project service: CRUD with derived task counts."""

from typing import Sequence

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError
from taskboard.models.project import CustomField, Project, Task
from taskboard.schemas import Project as ProjectSchema
from taskboard.schemas import ProjectCreate, ProjectUpdate

logger = structlog.get_logger()


class ProjectService:
    """Service for managing projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_row(self, project_id: str) -> Project:
        """Load a project row or raise NotFoundError."""
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    async def _task_counts(self, project_ids: Sequence[str]) -> dict[str, int]:
        if not project_ids:
            return {}
        result = await self.db.execute(
            select(Task.project_id, func.count(Task.id))
            .where(Task.project_id.in_(project_ids))
            .group_by(Task.project_id)
        )
        return {project_id: count for project_id, count in result.all()}

    def _to_schema(self, project: Project, task_count: int) -> ProjectSchema:
        return ProjectSchema.model_validate({**project.to_dict(), "task_count": task_count})

    async def list_projects(self) -> list[ProjectSchema]:
        """All projects, newest first."""
        result = await self.db.execute(
            select(Project).order_by(Project.created_at.desc(), Project.id)
        )
        projects = result.scalars().all()
        counts = await self._task_counts([p.id for p in projects])
        return [self._to_schema(p, counts.get(p.id, 0)) for p in projects]

    async def get_project(self, project_id: str) -> ProjectSchema:
        project = await self.get_row(project_id)
        counts = await self._task_counts([project_id])
        return self._to_schema(project, counts.get(project_id, 0))

    async def create_project(self, data: ProjectCreate) -> ProjectSchema:
        project = Project(
            title=data.title.strip(),
            description=data.description,
            status=data.status,
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)

        logger.info("project_created", project_id=project.id)
        return self._to_schema(project, 0)

    async def update_project(self, project_id: str, data: ProjectUpdate) -> ProjectSchema:
        project = await self.get_row(project_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("title") is not None:
            project.title = changes["title"].strip()
        if changes.get("description") is not None:
            project.description = changes["description"]
        if changes.get("status") is not None:
            project.status = changes["status"]

        await self.db.commit()
        await self.db.refresh(project)

        logger.info("project_updated", project_id=project_id, fields=sorted(changes))
        return await self.get_project(project_id)

    async def delete_project(self, project_id: str) -> None:
        """Delete a project together with its tasks and custom fields."""
        await self.get_row(project_id)

        # Children first; SQLite does not enforce the FK cascade
        tasks_result = await self.db.execute(delete(Task).where(Task.project_id == project_id))
        await self.db.execute(delete(CustomField).where(CustomField.project_id == project_id))
        await self.db.execute(delete(Project).where(Project.id == project_id))
        await self.db.commit()

        logger.info(
            "project_deleted",
            project_id=project_id,
            tasks_deleted=tasks_result.rowcount,
        )
